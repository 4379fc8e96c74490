# backend/models/request.py
import enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Enum, CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# Lifecycle of a component request: PENDING -> APPROVED | REJECTED, APPROVED -> FULFILLED
class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FULFILLED = "FULFILLED"


# A student's (or any member's) request for components, addressed to one faculty approver
class ComponentRequest(Base):
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    target_faculty_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    project_title = Column(String, nullable=False)
    status = Column(
        Enum(RequestStatus, name="requeststatus"), nullable=False, default=RequestStatus.PENDING, index=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "RequestItem", back_populates="request", cascade="all, delete-orphan", order_by="RequestItem.id"
    )
    user = relationship("User", foreign_keys=[user_id])
    target_faculty = relationship("User", foreign_keys=[target_faculty_id])


# A single line (component + quantity) of a request; immutable once created
class RequestItem(Base):
    __tablename__ = "request_items"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey("requests.id", ondelete="CASCADE"), index=True, nullable=False)
    component_id = Column(Integer, ForeignKey("components.id", ondelete="RESTRICT"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)

    request = relationship("ComponentRequest", back_populates="items")
    component = relationship("Component")

    __table_args__ = (
        # One line per component within a request
        UniqueConstraint("request_id", "component_id", name="uq_requestitem_request_component"),
    )
