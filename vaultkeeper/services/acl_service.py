"""ACL entry management.

Every operation requires MANAGE_ACL on the target resource. Writes are
validated before they reach the table:

    - the resource exists
    - folder entries target root folders only
    - the resource lives in a shared vault
    - permission tokens are canonical or known aliases
    - one entry per (resource, principal)

``inherit`` is always written as False.
"""

import logging
from typing import List

from ..exceptions import ConflictError, ResourceNotFoundError, ValidationError
from ..models.acl import AclEntry
from ..repositories.acl_repository import AclRepository
from ..schemas.acl import AclEntryCreate
from .access_service import enforce
from .base import AuthorizedService
from .permission_service import PermissionToken, parse_permissions

logger = logging.getLogger(__name__)

_MANAGE = [PermissionToken.MANAGE_ACL.value]


class AclService(AuthorizedService):
    """ACL listing and mutation on behalf of one caller."""

    scope_entity = "vaults"

    def __init__(self, db, principal, checker=None, settings=None):
        super().__init__(db, principal, checker=checker, settings=settings)
        self.acl_repo = AclRepository(db)

    def list_entries(self, resource_type: str, resource_id: str) -> List[AclEntry]:
        self._require_manage(resource_type, resource_id)
        return self.acl_repo.list_for_resource(resource_type, resource_id)

    def create_entry(self, data: AclEntryCreate) -> AclEntry:
        vault_id = self._validate_target(data.resource_type, data.resource_id)
        self._require_manage(data.resource_type, data.resource_id)

        vault = self.store.get_vault(vault_id)
        if vault is None or not vault.is_shared:
            raise ValidationError(
                "ACL entries can only be set on resources in shared vaults", field="resource_id"
            )

        try:
            permissions = parse_permissions(data.permissions)
        except ValueError as e:
            raise ValidationError(str(e), field="permissions") from e

        if self.acl_repo.find(data.resource_type, data.resource_id, data.principal_type, data.principal_id):
            raise ConflictError(
                "An ACL entry already exists for this principal on this resource",
                details={"principal_type": data.principal_type, "principal_id": data.principal_id},
            )

        entry = self.acl_repo.create(
            data.resource_type,
            data.resource_id,
            data.principal_type,
            data.principal_id,
            [p.value for p in permissions],
            created_by=self.principal.user_id,
        )
        self.db.commit()
        self.db.refresh(entry)

        logger.info(
            "ACL entry created",
            extra={
                "acl_id": entry.id,
                "resource_type": entry.resource_type,
                "resource_id": entry.resource_id,
                "principal_type": entry.principal_type,
                "principal_id": entry.principal_id,
                "permissions": entry.permissions,
                "user_id": self.principal.user_id,
            },
        )
        return entry

    def delete_entry(self, acl_id: str) -> None:
        entry = self.acl_repo.get_by_id(acl_id)
        self._require_manage(entry.resource_type, entry.resource_id)
        self.acl_repo.delete(entry)
        self.db.commit()
        logger.info(
            "ACL entry deleted",
            extra={"acl_id": acl_id, "resource_type": entry.resource_type,
                   "resource_id": entry.resource_id, "user_id": self.principal.user_id},
        )

    def _require_manage(self, resource_type: str, resource_id: str) -> None:
        enforce(
            self.access.check(resource_type, resource_id, self.principal, _MANAGE),
            resource_type, resource_id,
        )

    def _validate_target(self, resource_type: str, resource_id: str) -> str:
        """Check the resource exists and may carry ACLs. Returns its vault id."""
        if resource_type == "vault":
            vault = self.store.get_vault(resource_id)
            if vault is None:
                raise ResourceNotFoundError("vault", resource_id)
            return vault.id
        if resource_type == "folder":
            folder = self.store.get_folder(resource_id)
            if folder is None:
                raise ResourceNotFoundError("folder", resource_id)
            if not folder.is_root:
                raise ValidationError(
                    "ACL entries can only be set on root folders", field="resource_id"
                )
            return folder.vault_id
        item = self.store.get_item(resource_id)
        if item is None:
            raise ResourceNotFoundError("item", resource_id)
        return item.vault_id
