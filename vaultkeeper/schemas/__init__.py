"""Pydantic schemas for API validation."""

from .vault import VaultCreate, VaultUpdate, VaultResponse
from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderMoveRequest,
    FolderResponse,
    FolderDetailResponse,
)
from .item import (
    ItemCreate,
    ItemUpdate,
    ItemMoveRequest,
    ItemResponse,
    ItemDetailResponse,
)
from .acl import AclEntryCreate, AclEntryResponse
from .group import (
    GroupCreate,
    GroupUpdate,
    GroupResponse,
    GroupMemberCreate,
    GroupMemberResponse,
)

__all__ = [
    "VaultCreate",
    "VaultUpdate",
    "VaultResponse",
    "FolderCreate",
    "FolderUpdate",
    "FolderMoveRequest",
    "FolderResponse",
    "FolderDetailResponse",
    "ItemCreate",
    "ItemUpdate",
    "ItemMoveRequest",
    "ItemResponse",
    "ItemDetailResponse",
    "AclEntryCreate",
    "AclEntryResponse",
    "GroupCreate",
    "GroupUpdate",
    "GroupResponse",
    "GroupMemberCreate",
    "GroupMemberResponse",
]
