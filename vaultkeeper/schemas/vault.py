"""Vault schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, Literal

VaultType = Literal["personal", "shared"]


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name cannot be empty")
    if "/" in v:
        raise ValueError("Name cannot contain '/'")
    return v


class VaultCreate(BaseModel):
    """Schema for creating a vault."""
    name: str
    type: VaultType = "personal"

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class VaultUpdate(BaseModel):
    """Schema for renaming a vault. Type and owner are immutable."""
    name: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v) if v is not None else None


class VaultResponse(BaseModel):
    id: str
    name: str
    owner_user_id: str
    type: VaultType
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
