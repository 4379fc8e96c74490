from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional

from config import settings
from models.users import UserRole


# camelCase on the wire, snake_case in Python, readable straight from ORM rows
class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# Schema for user authentication credentials
class UserLogin(ApiModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self):
        self.email = (self.email or "").strip().lower()
        if not self.email or not self.password:
            raise ValueError("email and password are required")
        return self


# Schema for user registration requests; the role is never chosen by the caller
class UserCreate(ApiModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def check_password(self):
        if not self.email or not self.password:
            raise ValueError("email and password are required")
        if len(self.password) < settings.PASSWORD_MIN_LENGTH:
            raise ValueError(f"password must be at least {settings.PASSWORD_MIN_LENGTH} characters")
        return self


# Google ID token issued to the mobile/desktop client
class GoogleSignIn(ApiModel):
    id_token: Optional[str] = None


# Output schema for user profile details
class UserResponse(ApiModel):
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole


class UserEnvelope(ApiModel):
    user: UserResponse


# Returned by register, login and Google sign-in
class AuthResponse(ApiModel):
    user: UserResponse
    token: str


class FacultyList(ApiModel):
    faculty: List[UserResponse]
