"""Folder operations: list, create, read, rename, move, delete.

Public methods:
    list_folders   -- folders in the caller's read scope
    get_folder     -- folder plus capability flags for the caller
    create_folder  -- READ_WRITE on the parent folder, or on the vault for roots
    update_folder  -- rename; rewrites descendant paths
    move_folder    -- same-vault move, never into its own subtree; nesting a
                      root folder revokes its folder ACL entries
    delete_folder  -- removes the subtree, its items and their ACL entries

Paths are materialized: ``"/name/"`` for roots, ``"<parent.path>name/"``
below. Every rename or move rewrites the subtree's paths in the same
transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import ConflictError, ResourceNotFoundError, ValidationError
from ..models.vault import Folder, Vault
from ..repositories.acl_repository import AclRepository
from ..repositories.vault_repository import (
    FolderRepository,
    ItemRepository,
    VaultRepository,
    build_folder_path,
)
from ..schemas.folder import FolderCreate, FolderUpdate
from .access_service import enforce
from .base import AuthorizedService
from .folder_tree_service import expand_descendants, is_descendant_or_self
from .permission_service import PermissionToken, permission_level, satisfies
from .scope_service import enforce_mutation_scope

logger = logging.getLogger(__name__)

_WRITE = [PermissionToken.READ_WRITE.value]
_DELETE = [PermissionToken.DELETE.value]


class FolderService(AuthorizedService):
    """Folder CRUD and moves on behalf of one caller."""

    scope_entity = "folders"

    def __init__(self, db, principal, checker=None, settings=None):
        super().__init__(db, principal, checker=checker, settings=settings)
        self.vault_repo = VaultRepository(db)
        self.folder_repo = FolderRepository(db)
        self.item_repo = ItemRepository(db)
        self.acl_repo = AclRepository(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_folders(
        self,
        vault_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Folder]:
        scope = self.visible_scope()
        if not scope.vault_ids and not scope.folder_ids:
            return []
        return self.folder_repo.list_filtered(
            scope.vault_ids,
            scope.folder_ids,
            vault_id=vault_id,
            parent_id=parent_id,
            search=search,
        )

    def get_folder(self, folder_id: str) -> Dict[str, Any]:
        """Folder fields plus ``can_*`` flags and ``permission_level``."""
        folder, vault = self._load(folder_id)
        self.ensure_read_scope(vault, "folder", folder_id)
        enforce(
            self.access.check_folder_access(folder_id, self.principal),
            "folder", folder_id, hide_existence=True,
        )

        effective = self.access.effective_permissions("folder", folder_id, self.principal)
        can_write = satisfies(effective, _WRITE)
        return {
            **_folder_fields(folder),
            "can_edit": can_write,
            "can_share": can_write,
            "can_move": can_write,
            "can_delete": satisfies(effective, _DELETE),
            "permission_level": permission_level(effective),
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_folder(self, data: FolderCreate) -> Folder:
        vault = self.vault_repo.get_by_id(data.vault_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="create folders in")

        parent: Optional[Folder] = None
        if data.parent_id:
            parent = self.folder_repo.get_by_id(data.parent_id)
            if parent.vault_id != vault.id:
                raise ValidationError("Parent folder belongs to a different vault", field="parent_id")
            enforce(
                self.access.check_folder_access(parent.id, self.principal, _WRITE),
                "folder", parent.id,
            )
        else:
            enforce(self.access.check_vault_access(vault.id, self.principal, _WRITE), "vault", vault.id)

        self._ensure_unique_name(vault.id, parent.id if parent else None, data.name)
        folder = self.folder_repo.create(vault.id, data.name, self.principal.user_id, parent=parent)
        self.db.commit()
        self.db.refresh(folder)

        logger.info(
            "Folder created",
            extra={"folder_id": folder.id, "vault_id": vault.id, "path": folder.path},
        )
        return folder

    def update_folder(self, folder_id: str, data: FolderUpdate) -> Folder:
        folder, vault = self._load(folder_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="edit")
        enforce(self.access.check_folder_access(folder_id, self.principal, _WRITE), "folder", folder_id)

        if data.name is not None and data.name != folder.name:
            self._ensure_unique_name(folder.vault_id, folder.parent_id, data.name, exclude_id=folder.id)
            parent = self.folder_repo.get_by_id(folder.parent_id) if folder.parent_id else None
            folder.name = data.name
            self._relocate(folder, parent)

        self.db.commit()
        self.db.refresh(folder)
        return folder

    def move_folder(self, folder_id: str, parent_id: Optional[str]) -> Folder:
        """Move *folder_id* under *parent_id* (or to the vault root when None).

        A root folder moved under another folder loses its folder ACL entries
        in the same commit; moving it back to the root does not restore them.

        Raises:
            ValidationError: Target in another vault, or inside the folder's own subtree.
            ForbiddenError: Missing READ_WRITE on the folder or the target.
        """
        folder, vault = self._load(folder_id)
        enforce_mutation_scope(self.scope_mode("write"), vault, self.principal, action="move")
        enforce(self.access.check_folder_access(folder_id, self.principal, _WRITE), "folder", folder_id)

        parent: Optional[Folder] = None
        if parent_id:
            parent = self.folder_repo.get_by_id_optional(parent_id)
            if parent is None:
                raise ResourceNotFoundError("folder", parent_id)
            if parent.vault_id != folder.vault_id:
                raise ValidationError("Folders cannot be moved across vaults", field="parent_id")
            if is_descendant_or_self(self.store, folder.id, parent.id):
                raise ValidationError("Cannot move a folder into itself or its own subtree", field="parent_id")
            enforce(self.access.check_folder_access(parent.id, self.principal, _WRITE), "folder", parent.id)
        else:
            enforce(self.access.check_vault_access(vault.id, self.principal, _WRITE), "vault", vault.id)

        new_parent_id = parent.id if parent else None
        if new_parent_id == folder.parent_id:
            return folder

        self._ensure_unique_name(folder.vault_id, new_parent_id, folder.name, exclude_id=folder.id)
        was_root = folder.parent_id is None
        folder.parent_id = new_parent_id
        self._relocate(folder, parent)
        # Folder ACL entries may only sit on root folders.
        revoked = 0
        if was_root and new_parent_id is not None:
            revoked = self.acl_repo.delete_for_resources("folder", [folder.id])
        self.db.commit()
        self.db.refresh(folder)

        if revoked:
            logger.info(
                "Root folder nested; its folder ACL entries were revoked",
                extra={"folder_id": folder.id, "parent_id": new_parent_id,
                       "revoked": revoked, "user_id": self.principal.user_id},
            )
        return folder

    def delete_folder(self, folder_id: str) -> int:
        """Delete the folder subtree and its items. Returns the number of items removed."""
        folder, vault = self._load(folder_id)
        enforce_mutation_scope(self.scope_mode("delete"), vault, self.principal, action="delete")
        enforce(self.access.check_folder_access(folder_id, self.principal, _DELETE), "folder", folder_id)

        subtree = expand_descendants(self.store, [folder.id])
        item_ids = self.item_repo.ids_in_folders(subtree)
        self.acl_repo.delete_for_resources("item", item_ids)
        self.acl_repo.delete_for_resources("folder", subtree)
        removed = self.item_repo.delete_by_ids(item_ids)
        self.folder_repo.delete(folder)
        self.db.commit()

        logger.info(
            "Folder deleted",
            extra={"folder_id": folder_id, "folders": len(subtree), "items": removed},
        )
        return removed

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load(self, folder_id: str) -> tuple[Folder, Vault]:
        folder = self.folder_repo.get_by_id(folder_id)
        vault = self.vault_repo.get_by_id_optional(folder.vault_id)
        if vault is None:
            raise ResourceNotFoundError("folder", folder_id)
        return folder, vault

    def _ensure_unique_name(
        self, vault_id: str, parent_id: Optional[str], name: str, exclude_id: Optional[str] = None
    ) -> None:
        if self.folder_repo.sibling_exists(vault_id, parent_id, name, exclude_id=exclude_id):
            raise ConflictError(
                f"A folder named '{name}' already exists here",
                details={"vault_id": vault_id, "parent_id": parent_id, "name": name},
            )

    def _relocate(self, folder: Folder, parent: Optional[Folder]) -> None:
        old_path = folder.path
        folder.path = build_folder_path(folder.name, parent)
        if folder.path != old_path:
            self.folder_repo.rewrite_subtree_paths(folder, old_path)


def _folder_fields(folder: Folder) -> Dict[str, Any]:
    return {
        "id": folder.id,
        "vault_id": folder.vault_id,
        "parent_id": folder.parent_id,
        "name": folder.name,
        "path": folder.path,
        "created_by": folder.created_by,
        "created_at": folder.created_at,
    }
