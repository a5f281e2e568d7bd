"""Database models."""

from .vault import Vault, Folder, Item
from .acl import AclEntry, StaticGroup, GroupMember

__all__ = [
    "Vault", "Folder", "Item",
    "AclEntry", "StaticGroup", "GroupMember",
]
