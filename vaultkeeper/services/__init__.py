"""Business logic services."""

from .vault_service import VaultService
from .folder_service import FolderService
from .item_service import ItemService
from .acl_service import AclService
from .group_service import GroupService

__all__ = ["VaultService", "FolderService", "ItemService", "AclService", "GroupService"]
