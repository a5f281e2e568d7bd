"""Static group schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Value cannot be empty")
    return v


class GroupCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v)


class GroupUpdate(BaseModel):
    """Rename or re-describe a group. Omitted fields are left unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _not_blank(v) if v is not None else None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupMemberCreate(BaseModel):
    """``user_id`` is either a user id or an email address."""
    user_id: str

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        return _not_blank(v)


class GroupMemberResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
