"""Profile model: one row per identity, deleted with it."""

from typing import List, Optional
import uuid

from sqlalchemy.dialects.postgresql import ARRAY, VARCHAR
from sqlmodel import Field, SQLModel

from .base import TimestampMixin


class Profile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    email: str = Field(nullable=False, index=True)
    full_name: str = Field(nullable=False, default="")
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    job_title: Optional[str] = None
    company: str = Field(nullable=False, default="")
    skills: List[str] = Field(default_factory=list, sa_type=ARRAY(VARCHAR))
    interests: List[str] = Field(default_factory=list, sa_type=ARRAY(VARCHAR))
    role: str = Field(nullable=False, default="member")  # admin | manager | member
    is_approved: bool = Field(nullable=False, default=False)
    is_verified: bool = Field(nullable=False, default=False)
