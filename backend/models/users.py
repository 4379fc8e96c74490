# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, Enum, func
from database import Base


# Closed set of account roles; PENDING accounts are quarantined until promoted
class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    TA = "TA"
    ADMIN = "ADMIN"
    PENDING = "PENDING"


# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    # Absent for accounts created through Google Sign-In
    password_hash = Column(String, nullable=True)
    name = Column(String, nullable=True)
    role = Column(Enum(UserRole, name="userrole"), nullable=False, default=UserRole.STUDENT)
    google_id = Column(String, unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
