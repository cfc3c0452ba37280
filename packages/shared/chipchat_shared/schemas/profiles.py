"""Profile, auth and admin schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, UUID4

from .common import UserRole


# ---------------------------------------------------------------------------
# Auth pages
# ---------------------------------------------------------------------------

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=1, max_length=200)
    job_title: Optional[str] = None
    company: str = ""


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    user_id: str
    email: str
    is_approved: bool
    redirect_to: str
    message: str


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    email: str
    full_name: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    company: str = ""
    skills: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    role: UserRole
    is_approved: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(BaseModel):
    """Self-edit. Role, approval and verification are admin-only."""
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

class AdminUserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=200)
    role: UserRole = UserRole.MEMBER
    job_title: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


class AdminUserCreateResponse(BaseModel):
    profile: ProfileRead
    temporary_password: Optional[str] = None  # only when generated server-side


class RoleUpdate(BaseModel):
    role: UserRole


class ProfileListResponse(BaseModel):
    data: List[ProfileRead]
