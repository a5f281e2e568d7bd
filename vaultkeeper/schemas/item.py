"""Item schemas. Items carry metadata only; secret values never cross this API."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Literal

ItemType = Literal["credential", "api_key", "secure_note"]


def _clean_tags(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return None
    seen: List[str] = []
    for tag in v:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class ItemCreate(BaseModel):
    """Create an item in a vault, optionally inside a folder of that vault."""
    vault_id: str
    folder_id: Optional[str] = None
    type: ItemType = "credential"
    title: str
    username: Optional[str] = None
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v)


class ItemUpdate(BaseModel):
    title: Optional[str] = None
    username: Optional[str] = None
    url: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)


class ItemMoveRequest(BaseModel):
    """Target folder. ``None`` moves the item to its vault's root."""
    folder_id: Optional[str] = None


class ItemResponse(BaseModel):
    id: str
    vault_id: str
    folder_id: Optional[str] = None
    type: ItemType
    title: str
    username: Optional[str] = None
    url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_by: str
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator('tags', mode='before')
    @classmethod
    def default_tags(cls, v):
        return v or []


class ItemDetailResponse(ItemResponse):
    can_edit: bool = False
    can_delete: bool = False
    can_move: bool = False
    permission_level: str = "none"
