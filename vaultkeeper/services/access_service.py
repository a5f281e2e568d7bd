"""Point access checks for vaults, folders and items.

Decision order for every resource type:

    1. resource (joined to its vault) missing      -> deny ResourceNotFound
    2. caller owns the vault and it is personal      -> allow
    3. caller is admin and the vault is shared       -> allow bare visibility
       (any requirement when admin_shared_full_access is on)
    4. gather ACL rows naming any principal id
    5. no rows -> deny MissingPermissionsForAdmin (admin on shared) or
                  NoAclPermissionsFound
    6. merge rows, allow iff the merged set satisfies the requirement

Folder ACLs live on root folders only. A folder is governed by its root
ancestor's rows plus its vault's rows; an item by its own rows plus, when it
sits in a folder whose check passes in the same vault, that folder's rows.
Vault grants reach an item only through its folder, so a folderless item in
a shared vault is governed by item rows alone.

Denials are return values. Store failures propagate as InfrastructureError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from ..core.config import Settings, settings as default_settings
from ..exceptions import ForbiddenError, ResourceNotFoundError
from .folder_tree_service import find_root_folder
from .permission_service import ALL_PERMISSIONS, PermissionToken, merge, satisfies

if TYPE_CHECKING:
    from ..models.acl import AclEntry
    from ..models.vault import Folder, Item, Vault
    from ..repositories.resource_store import ResourceStore
    from .principal_service import Principal

logger = logging.getLogger(__name__)


class DenyReason(str, Enum):
    RESOURCE_NOT_FOUND = "ResourceNotFound"
    NO_ACL_PERMISSIONS_FOUND = "NoAclPermissionsFound"
    MISSING_PERMISSIONS = "MissingPermissions"
    MISSING_PERMISSIONS_FOR_ADMIN = "MissingPermissionsForAdmin"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a point check. ``reason`` is set only on denial."""

    allowed: bool
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls) -> AccessDecision:
        return cls(True)

    @classmethod
    def deny(cls, reason: DenyReason) -> AccessDecision:
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


class AccessService:
    """Access Check Engine bound to one request's resource store."""

    def __init__(self, store: ResourceStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or default_settings

    # ------------------------------------------------------------------
    # Public checks
    # ------------------------------------------------------------------

    def check_vault_access(
        self, vault_id: str, principal: Principal, required: Sequence[str] = ()
    ) -> AccessDecision:
        vault = self.store.get_vault(vault_id)
        if vault is None:
            return self._denied("vault", vault_id, DenyReason.RESOURCE_NOT_FOUND)
        return self._decide("vault", vault_id, vault, principal, required,
                            lambda: self._vault_rows(vault, principal))

    def check_folder_access(
        self, folder_id: str, principal: Principal, required: Sequence[str] = ()
    ) -> AccessDecision:
        folder = self.store.get_folder(folder_id)
        vault = self.store.get_vault(folder.vault_id) if folder is not None else None
        if folder is None or vault is None:
            return self._denied("folder", folder_id, DenyReason.RESOURCE_NOT_FOUND)
        return self._decide("folder", folder_id, vault, principal, required,
                            lambda: self._folder_rows(folder, principal))

    def check_item_access(
        self, item_id: str, principal: Principal, required: Sequence[str] = ()
    ) -> AccessDecision:
        item = self.store.get_item(item_id)
        vault = self.store.get_vault(item.vault_id) if item is not None else None
        if item is None or vault is None:
            return self._denied("item", item_id, DenyReason.RESOURCE_NOT_FOUND)
        return self._decide("item", item_id, vault, principal, required,
                            lambda: self._item_rows(item, vault, principal))

    def check(
        self,
        resource_type: str,
        resource_id: str,
        principal: Principal,
        required: Sequence[str] = (),
    ) -> AccessDecision:
        """Dispatch to the check for *resource_type* (vault, folder or item)."""
        checks = {
            "vault": self.check_vault_access,
            "folder": self.check_folder_access,
            "item": self.check_item_access,
        }
        if resource_type not in checks:
            raise ValueError(f"Unknown resource type: {resource_type}")
        return checks[resource_type](resource_id, principal, required)

    def effective_permissions(
        self, resource_type: str, resource_id: str, principal: Principal
    ) -> frozenset[PermissionToken]:
        """Merged permission set the caller holds on a resource.

        Owner and admin bypasses yield the full set; a missing resource
        yields the empty set.
        """
        located = self._locate(resource_type, resource_id)
        if located is None:
            return frozenset()
        resource, vault = located
        if self._owns_personal(vault, principal):
            return ALL_PERMISSIONS
        if self._is_admin(principal) and vault.is_shared and self.settings.admin_shared_full_access:
            return ALL_PERMISSIONS
        if resource_type == "vault":
            rows = self._vault_rows(vault, principal)
        elif resource_type == "folder":
            rows = self._folder_rows(resource, principal)
        else:
            rows = self._item_rows(resource, vault, principal)
        return merge(row.permissions for row in rows)

    # ------------------------------------------------------------------
    # Decision core
    # ------------------------------------------------------------------

    def _decide(self, resource_type, resource_id, vault, principal, required, gather_rows) -> AccessDecision:
        if self._owns_personal(vault, principal):
            return AccessDecision.allow()

        admin_on_shared = self._is_admin(principal) and vault.is_shared
        if admin_on_shared and (not required or self.settings.admin_shared_full_access):
            return AccessDecision.allow()

        rows = gather_rows()
        if not rows:
            reason = (
                DenyReason.MISSING_PERMISSIONS_FOR_ADMIN if admin_on_shared
                else DenyReason.NO_ACL_PERMISSIONS_FOUND
            )
            return self._denied(resource_type, resource_id, reason, principal)

        merged = merge(row.permissions for row in rows)
        if satisfies(merged, required):
            return AccessDecision.allow()
        return self._denied(resource_type, resource_id, DenyReason.MISSING_PERMISSIONS, principal)

    def _vault_rows(self, vault: Vault, principal: Principal) -> list[AclEntry]:
        return self.store.get_acl_rows("vault", [vault.id], principal.principal_ids)

    def _root_folder_rows(self, folder: Folder, principal: Principal) -> list[AclEntry]:
        root = find_root_folder(self.store, folder)
        if root is None:
            logger.warning(
                "Folder has a broken parent chain; ignoring folder ACLs",
                extra={"folder_id": folder.id, "vault_id": folder.vault_id},
            )
            return []
        return self.store.get_acl_rows("folder", [root.id], principal.principal_ids)

    def _folder_rows(self, folder: Folder, principal: Principal) -> list[AclEntry]:
        return _dedupe(
            self._root_folder_rows(folder, principal),
            self.store.get_acl_rows("vault", [folder.vault_id], principal.principal_ids),
        )

    def _item_rows(self, item: Item, vault: Vault, principal: Principal) -> list[AclEntry]:
        rows = self.store.get_acl_rows("item", [item.id], principal.principal_ids)
        if item.folder_id is None:
            return rows

        folder = self.store.get_folder(item.folder_id)
        if folder is None:
            return rows
        if folder.vault_id != item.vault_id:
            logger.warning(
                "Item and its folder live in different vaults; not inheriting folder ACLs",
                extra={"item_id": item.id, "item_vault_id": item.vault_id,
                       "folder_id": folder.id, "folder_vault_id": folder.vault_id},
            )
            return rows

        # Same vault, so the folder check would reach the same bypasses that
        # already failed above; it reduces to the folder's own rows deciding.
        folder_rows = self._folder_rows(folder, principal)
        if self._decide("folder", folder.id, vault, principal, (), lambda: folder_rows).allowed:
            rows = _dedupe(rows, folder_rows)
        return rows

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _locate(self, resource_type: str, resource_id: str):
        if resource_type == "vault":
            vault = self.store.get_vault(resource_id)
            return (vault, vault) if vault is not None else None
        if resource_type == "folder":
            resource = self.store.get_folder(resource_id)
        elif resource_type == "item":
            resource = self.store.get_item(resource_id)
        else:
            raise ValueError(f"Unknown resource type: {resource_type}")
        if resource is None:
            return None
        vault = self.store.get_vault(resource.vault_id)
        return (resource, vault) if vault is not None else None

    def _is_admin(self, principal: Principal) -> bool:
        return principal.has_role(self.settings.admin_role)

    @staticmethod
    def _owns_personal(vault: Vault, principal: Principal) -> bool:
        return vault.is_personal and bool(principal.user_id) and vault.owner_user_id == principal.user_id

    @staticmethod
    def _denied(
        resource_type: str,
        resource_id: str,
        reason: DenyReason,
        principal: Optional[Principal] = None,
    ) -> AccessDecision:
        logger.debug(
            "Access denied: %s", reason.value,
            extra={
                "resource_type": resource_type,
                "resource_id": resource_id,
                "user_id": principal.user_id if principal else None,
            },
        )
        return AccessDecision.deny(reason)


def _dedupe(*row_lists: Iterable[AclEntry]) -> list[AclEntry]:
    seen: set[str] = set()
    rows: list[AclEntry] = []
    for row_list in row_lists:
        for row in row_list:
            if row.id not in seen:
                seen.add(row.id)
                rows.append(row)
    return rows


def enforce(
    decision: AccessDecision,
    resource_type: str,
    resource_id: str,
    hide_existence: bool = False,
) -> None:
    """Turn a denial into the matching HTTP-facing exception.

    ``hide_existence`` reports every denial as 404 so reads do not leak
    whether a resource the caller cannot see exists.
    """
    if decision.allowed:
        return
    if decision.reason == DenyReason.RESOURCE_NOT_FOUND or hide_existence:
        raise ResourceNotFoundError(resource_type, resource_id)
    raise ForbiddenError(
        f"Insufficient permissions on {resource_type} {resource_id}",
        reason=decision.reason.value if decision.reason else None,
    )
