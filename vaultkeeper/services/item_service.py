"""Item operations: list, create, read, update, move, delete.

Items never hold secret values here, only the metadata a vault UI lists.
An item's ``vault_id`` always equals its folder's vault; moving an item into
a folder of another vault reassigns ``vault_id`` explicitly.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ForbiddenError, ResourceNotFoundError, ValidationError
from ..models.vault import Item, Vault
from ..repositories.acl_repository import AclRepository
from ..repositories.vault_repository import FolderRepository, ItemRepository, VaultRepository
from ..schemas.item import ItemCreate, ItemUpdate
from .access_service import enforce
from .base import AuthorizedService
from .folder_tree_service import expand_descendants
from .permission_service import PermissionToken, permission_level, satisfies
from .scope_service import enforce_mutation_scope

logger = logging.getLogger(__name__)

_WRITE = [PermissionToken.READ_WRITE.value]
_DELETE = [PermissionToken.DELETE.value]


class ItemService(AuthorizedService):
    """Item CRUD and moves on behalf of one caller."""

    scope_entity = "items"

    def __init__(self, db, principal, checker=None, settings=None):
        super().__init__(db, principal, checker=checker, settings=settings)
        self.vault_repo = VaultRepository(db)
        self.folder_repo = FolderRepository(db)
        self.item_repo = ItemRepository(db)
        self.acl_repo = AclRepository(db)

    def list_items(
        self,
        vault_id: Optional[str] = None,
        folder_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Item]:
        """Items in read scope. ``folder_id`` includes every descendant folder."""
        scope = self.visible_scope()
        if scope.is_empty:
            return []
        within = expand_descendants(self.store, [folder_id]) if folder_id else None
        return self.item_repo.list_filtered(
            scope.open_vault_ids,
            scope.folder_ids,
            item_ids=scope.item_ids,
            foldered_vault_ids=scope.vault_ids,
            vault_id=vault_id,
            within_folders=within,
            search=search,
        )

    def get_item(self, item_id: str) -> Dict[str, Any]:
        item, vault = self._load(item_id)
        self.ensure_read_scope(vault, "item", item_id)
        enforce(
            self.access.check_item_access(item_id, self.principal),
            "item", item_id, hide_existence=True,
        )

        effective = self.access.effective_permissions("item", item_id, self.principal)
        can_write = satisfies(effective, _WRITE)
        return {
            **_item_fields(item),
            "can_edit": can_write,
            "can_move": can_write,
            "can_delete": satisfies(effective, _DELETE),
            "permission_level": permission_level(effective),
        }

    def create_item(self, data: ItemCreate) -> Item:
        vault = self.vault_repo.get_by_id(data.vault_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="create items in")

        if data.folder_id:
            folder = self.folder_repo.get_by_id(data.folder_id)
            if folder.vault_id != vault.id:
                raise ValidationError("Folder belongs to a different vault", field="folder_id")
            enforce(self.access.check_folder_access(folder.id, self.principal, _WRITE), "folder", folder.id)
        else:
            enforce(self.access.check_vault_access(vault.id, self.principal, _WRITE), "vault", vault.id)

        item = self.item_repo.create(
            vault_id=vault.id,
            title=data.title,
            item_type=data.type,
            created_by=self.principal.user_id,
            folder_id=data.folder_id,
            username=data.username,
            url=data.url,
            tags=data.tags,
        )
        self.db.commit()
        self.db.refresh(item)
        logger.info("Item created", extra={"item_id": item.id, "vault_id": vault.id})
        return item

    def update_item(self, item_id: str, data: ItemUpdate) -> Item:
        item, vault = self._load(item_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="edit")
        enforce(self.access.check_item_access(item_id, self.principal, _WRITE), "item", item_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "title" and value is None:
                continue
            setattr(item, field, value)
        item.updated_by = self.principal.user_id
        self.db.commit()
        self.db.refresh(item)
        return item

    def move_item(self, item_id: str, folder_id: Optional[str]) -> Item:
        """Move an item into *folder_id*, or to its vault's root when None.

        Moving into a folder of another vault reassigns the item's vault.
        Shared-to-personal moves are refused.
        """
        item, vault = self._load(item_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="move")
        enforce(self.access.check_item_access(item_id, self.principal, _WRITE), "item", item_id)

        target_vault = vault
        if folder_id:
            folder = self.folder_repo.get_by_id_optional(folder_id)
            if folder is None:
                raise ResourceNotFoundError("folder", folder_id)
            target_vault = self.vault_repo.get_by_id_optional(folder.vault_id)
            if target_vault is None:
                raise ResourceNotFoundError("folder", folder_id)
            if vault.is_shared and target_vault.is_personal:
                raise ForbiddenError(
                    "Items cannot be moved from a shared vault into a personal vault",
                    reason="SharedToPersonal",
                )
            if target_vault.id != vault.id:
                enforce_mutation_scope(
                    self.scope_mode("write"), target_vault, self.principal, action="move items into"
                )
            enforce(self.access.check_folder_access(folder.id, self.principal, _WRITE), "folder", folder.id)

        if target_vault.id != item.vault_id:
            logger.info(
                "Item moved across vaults",
                extra={"item_id": item.id, "from_vault_id": item.vault_id, "to_vault_id": target_vault.id},
            )
        item.folder_id = folder_id or None
        item.vault_id = target_vault.id
        item.updated_by = self.principal.user_id
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item_id: str) -> None:
        item, vault = self._load(item_id)
        enforce_mutation_scope(self.scope_mode("delete"), vault, self.principal, action="delete")
        enforce(self.access.check_item_access(item_id, self.principal, _DELETE), "item", item_id)

        self.acl_repo.delete_for_resources("item", [item.id])
        self.item_repo.delete(item)
        self.db.commit()
        logger.info("Item deleted", extra={"item_id": item_id, "vault_id": vault.id})

    def _load(self, item_id: str) -> tuple[Item, Vault]:
        item = self.item_repo.get_by_id(item_id)
        vault = self.vault_repo.get_by_id_optional(item.vault_id)
        if vault is None:
            raise ResourceNotFoundError("item", item_id)
        return item, vault


def _item_fields(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "vault_id": item.vault_id,
        "folder_id": item.folder_id,
        "type": item.type,
        "title": item.title,
        "username": item.username,
        "url": item.url,
        "tags": list(item.tags or []),
        "created_by": item.created_by,
        "updated_by": item.updated_by,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }
