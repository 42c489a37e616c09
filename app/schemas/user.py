"""
Pydantic schemas for profiles and admin user operations.
"""

from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field
from app.models.profile import UserRole


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    profile: ProfileResponse
    dashboard: str


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: Optional[str] = Field(None, min_length=8)
    role: UserRole
    region: Optional[str] = None


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    role: Optional[UserRole] = None
    region: Optional[str] = None


class EmailChangeRequest(BaseModel):
    email: EmailStr


class RemoteOperationResponse(BaseModel):
    success: bool
    data: Optional[Any] = None
