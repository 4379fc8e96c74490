from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Actions written by the API; stored as plain strings
AUDIT_ACTIONS = (
    "REGISTER",
    "LOGIN",
    "COMPONENT_CREATE",
    "COMPONENT_UPDATE",
    "COMPONENT_DELETE",
    "REQUEST_CREATE",
    "REQUEST_STATUS_CHANGE",
    "REQUEST_DELETE",
)


# One audited action (sign-in, catalogue edit, request lifecycle step)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Accounts may be removed; their history stays
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)

    # Not a foreign key: entries must outlive deleted requests
    request_id = Column(Integer, nullable=True, index=True)

    # Old/new status, component id and name, item count
    meta = Column(JSON, nullable=True)

    actor = relationship("User", lazy="joined", uselist=False)
