from datetime import datetime
from typing import List, Optional

from pydantic import StrictInt, field_validator

from models.request import RequestStatus
from schemas.component import ComponentResponse
from schemas.user import ApiModel, UserResponse


def _reject_non_integer(value, message: str):
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise ValueError(message)
    return value


# Input line item; business rules (positive quantity, no duplicates) live in the lifecycle service
class RequestItemCreate(ApiModel):
    component_id: Optional[StrictInt] = None
    quantity: Optional[StrictInt] = None

    @field_validator("component_id", mode="before")
    @classmethod
    def validate_component_id(cls, value):
        return _reject_non_integer(value, "componentId must be a number")

    @field_validator("quantity", mode="before")
    @classmethod
    def validate_quantity(cls, value):
        return _reject_non_integer(value, "quantity must be a positive number")


class RequestCreate(ApiModel):
    items: Optional[List[RequestItemCreate]] = None
    target_faculty_id: Optional[StrictInt] = None
    project_title: Optional[str] = None

    @field_validator("target_faculty_id", mode="before")
    @classmethod
    def validate_target_faculty_id(cls, value):
        return _reject_non_integer(value, "invalid targetFacultyId")


class RequestStatusUpdate(ApiModel):
    status: Optional[str] = None


class RequestItemResponse(ApiModel):
    id: int
    component_id: int
    quantity: int
    component: Optional[ComponentResponse] = None


class RequestResponse(ApiModel):
    id: int
    user_id: int
    target_faculty_id: int
    project_title: str
    status: RequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[RequestItemResponse]
    user: Optional[UserResponse] = None
    target_faculty: Optional[UserResponse] = None


class RequestEnvelope(ApiModel):
    request: RequestResponse


class RequestList(ApiModel):
    requests: List[RequestResponse]
