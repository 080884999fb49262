from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from uuid import UUID

from app.schemas.auth import UserResponse


class AdminLogin(BaseModel):
    email: str
    password: str


class SuspendRequest(BaseModel):
    suspend: bool


class AddModeratorRequest(BaseModel):
    email: EmailStr
    password: Optional[str] = None


class RemoveModeratorRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(alias="userId")


class ModeratorUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[EmailStr] = None
    institution_name: Optional[str] = Field(default=None, alias="institutionName")
    class_name: Optional[str] = Field(default=None, alias="class")
    password: Optional[str] = None


class AdminSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logged_in: bool = Field(alias="loggedIn")


class UserListResponse(BaseModel):
    users: List[UserResponse]


class UserActionResponse(BaseModel):
    message: str
    user: Optional[UserResponse] = None


class AdminMeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_admin: bool = Field(alias="isAdmin")
