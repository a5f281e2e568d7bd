"""Vault operations: list, create, read, rename, delete.

Every operation resolves the caller's scope mode first and the vault ACL
decision second. Shared vaults can only be created by admins; the creator
receives a DELETE + MANAGE_ACL grant so the new vault is manageable without
relying on the admin bypass.
"""

import logging
from typing import List, Optional

from ..exceptions import ForbiddenError
from ..models.vault import Vault
from ..repositories.acl_repository import AclRepository
from ..repositories.vault_repository import FolderRepository, ItemRepository, VaultRepository
from ..schemas.vault import VaultCreate, VaultUpdate
from .access_service import enforce
from .base import AuthorizedService
from .permission_service import PermissionToken
from .scope_service import ScopeMode, enforce_mutation_scope

logger = logging.getLogger(__name__)

_CREATOR_GRANT = [PermissionToken.DELETE.value, PermissionToken.MANAGE_ACL.value]


class VaultService(AuthorizedService):
    """Vault CRUD on behalf of one caller."""

    scope_entity = "vaults"

    def __init__(self, db, principal, checker=None, settings=None):
        super().__init__(db, principal, checker=checker, settings=settings)
        self.vault_repo = VaultRepository(db)
        self.folder_repo = FolderRepository(db)
        self.item_repo = ItemRepository(db)
        self.acl_repo = AclRepository(db)

    def list_vaults(self, vault_type: Optional[str] = None, search: Optional[str] = None) -> List[Vault]:
        scope = self.visible_scope()
        if not scope.vault_ids:
            return []
        return self.vault_repo.list_by_ids(scope.vault_ids, vault_type=vault_type, search=search)

    def get_vault(self, vault_id: str) -> Vault:
        vault = self.vault_repo.get_by_id(vault_id)
        self.ensure_read_scope(vault, "vault", vault_id)
        enforce(
            self.access.check_vault_access(vault_id, self.principal),
            "vault", vault_id, hide_existence=True,
        )
        return vault

    def create_vault(self, data: VaultCreate) -> Vault:
        mode = self.scope_mode("write")
        if mode == ScopeMode.NONE:
            raise ForbiddenError("Not permitted to create vaults", reason="ScopeNone")
        if data.type == "shared":
            if not self.is_admin:
                raise ForbiddenError("Only admins can create shared vaults")
            if mode in (ScopeMode.OWN, ScopeMode.LDD):
                raise ForbiddenError(
                    f"Scope '{mode.value}' only allows personal vaults", reason="ScopeOwn"
                )

        vault = self.vault_repo.create(data.name, self.principal.user_id, data.type)
        if vault.is_shared:
            self.acl_repo.create(
                "vault", vault.id, "user", self.principal.user_id,
                _CREATOR_GRANT, created_by=self.principal.user_id,
            )
        self.db.commit()
        self.db.refresh(vault)

        logger.info(
            "Vault created",
            extra={"vault_id": vault.id, "vault_type": vault.type, "user_id": self.principal.user_id},
        )
        return vault

    def update_vault(self, vault_id: str, data: VaultUpdate) -> Vault:
        vault = self._authorize_mutation(vault_id, "write", PermissionToken.READ_WRITE)
        if data.name is not None:
            vault.name = data.name
        self.db.commit()
        self.db.refresh(vault)
        return vault

    def delete_vault(self, vault_id: str) -> None:
        """Delete a vault with its folders, items and every ACL attached to them."""
        vault = self._authorize_mutation(vault_id, "delete", PermissionToken.DELETE)

        folder_ids = self.folder_repo.ids_in_vault(vault_id)
        item_ids = self.item_repo.ids_in_vault(vault_id)
        self.acl_repo.delete_for_resources("item", item_ids)
        self.acl_repo.delete_for_resources("folder", folder_ids)
        self.acl_repo.delete_for_resources("vault", [vault_id])
        self.vault_repo.delete(vault)
        self.db.commit()

        logger.info(
            "Vault deleted",
            extra={"vault_id": vault_id, "folders": len(folder_ids), "items": len(item_ids),
                   "user_id": self.principal.user_id},
        )

    def _authorize_mutation(self, vault_id: str, verb: str, required: PermissionToken) -> Vault:
        vault = self.vault_repo.get_by_id(vault_id)
        enforce_mutation_scope(self.scope_mode(verb), vault, self.principal, action=verb)
        enforce(self.access.check_vault_access(vault_id, self.principal, [required]), "vault", vault_id)
        return vault
