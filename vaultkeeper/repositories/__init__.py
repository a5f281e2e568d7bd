"""Data access repositories."""

from .base import BaseRepository
from .resource_store import ResourceStore
from .vault_repository import VaultRepository, FolderRepository, ItemRepository
from .acl_repository import AclRepository, GroupRepository

__all__ = [
    "BaseRepository",
    "ResourceStore",
    "VaultRepository",
    "FolderRepository",
    "ItemRepository",
    "AclRepository",
    "GroupRepository",
]
