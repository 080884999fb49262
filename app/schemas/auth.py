from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID


# ============================================================
# Requests
# ============================================================

class UserLogin(BaseModel):
    """POST /auth/login and /admin/login body."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "student@school.edu",
                "password": "SecurePass123"
            }
        }
    )


class ProfileUpdateRequest(BaseModel):
    """Schema for PUT /auth/profile"""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    institution_name: Optional[str] = Field(default=None, alias="institutionName")
    class_name: Optional[str] = Field(default=None, alias="class")
    group_name: Optional[str] = Field(default=None, alias="group")
    bio: Optional[str] = None

    @field_validator("name", "institution_name")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return " ".join(v.split())


# ============================================================
# Responses
# ============================================================

class MessageResponse(BaseModel):
    message: str


class ProfileResponse(BaseModel):
    bio: str = ""
    avatar: str = ""
    badges: List[str] = Field(default_factory=list)
    bookmarks: List[str] = Field(default_factory=list)


class UserResponse(BaseModel):
    """A stored user as returned to clients; the password digest is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: str
    class_name: str
    institution_name: str
    group_name: Optional[str] = None
    profile: ProfileResponse
    is_verified_teacher: bool = False
    applied_for_paid: bool = False
    suspended: bool = False
    created_at: datetime


class AuthResponse(BaseModel):
    message: str
    user: Optional[UserResponse] = None


class AvatarResponse(BaseModel):
    message: str
    avatar: str


# ============================================================
# Errors
# ============================================================

class ErrorResponse(BaseModel):
    """Body of every non-2xx response raised by the services."""

    message: str
    error: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Invalid credentials",
                "error": None
            }
        }
    )
