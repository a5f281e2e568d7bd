"""Folder schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from .vault import _clean_name


class FolderCreate(BaseModel):
    """Create a folder at the vault root (no parent) or under ``parent_id``."""
    vault_id: str
    name: str
    parent_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)


class FolderUpdate(BaseModel):
    """Rename a folder. Descendant paths are rewritten."""
    name: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v) if v is not None else None


class FolderMoveRequest(BaseModel):
    """Move a folder under ``parent_id`` in the same vault, or to the root when None."""
    parent_id: Optional[str] = None


class FolderResponse(BaseModel):
    id: str
    vault_id: str
    parent_id: Optional[str] = None
    name: str
    path: str
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderDetailResponse(FolderResponse):
    """Single-folder view with the caller's capability flags."""
    can_edit: bool = False
    can_delete: bool = False
    can_move: bool = False
    can_share: bool = False
    permission_level: str = "none"
