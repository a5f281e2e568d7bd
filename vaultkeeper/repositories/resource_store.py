"""Read-side store consumed by the authorization engine.

Every method is a single query. Nothing is cached: each access check re-reads
the database so a revoked ACL takes effect on the next request.
"""

from typing import Iterable, List, Optional, Set

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.acl import AclEntry, GroupMember
from ..models.vault import Folder, Item, Vault
from .base import store_errors


class ResourceStore:
    """SQLAlchemy implementation of the engine's resource store."""

    def __init__(self, db: Session):
        self.db = db

    # --- Point lookups ---

    def get_vault(self, vault_id: str) -> Optional[Vault]:
        with store_errors("vault lookup"):
            return self.db.query(Vault).filter(Vault.id == vault_id).first()

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        with store_errors("folder lookup"):
            return self.db.query(Folder).filter(Folder.id == folder_id).first()

    def get_item(self, item_id: str) -> Optional[Item]:
        with store_errors("item lookup"):
            return self.db.query(Item).filter(Item.id == item_id).first()

    def get_folders_by_ids(self, folder_ids: Iterable[str]) -> List[Folder]:
        ids = list(set(folder_ids))
        if not ids:
            return []
        with store_errors("folder batch lookup"):
            return self.db.query(Folder).filter(Folder.id.in_(ids)).all()

    def get_items_by_ids(self, item_ids: Iterable[str]) -> List[Item]:
        ids = list(set(item_ids))
        if not ids:
            return []
        with store_errors("item batch lookup"):
            return self.db.query(Item).filter(Item.id.in_(ids)).all()

    # --- Tree traversal ---

    def get_folders_by_parent(self, parent_ids: Iterable[str]) -> List[Folder]:
        """Direct children of any folder in ``parent_ids``."""
        ids = list(set(parent_ids))
        if not ids:
            return []
        with store_errors("folder children lookup"):
            return self.db.query(Folder).filter(Folder.parent_id.in_(ids)).all()

    # --- ACL rows ---

    def get_acl_rows(
        self,
        resource_type: str,
        resource_ids: Iterable[str],
        principal_ids: Iterable[str],
    ) -> List[AclEntry]:
        """ACL rows on any of ``resource_ids`` naming any of ``principal_ids``."""
        rids = [r for r in set(resource_ids) if r]
        pids = [p for p in set(principal_ids) if p]
        if not rids or not pids:
            return []
        with store_errors("ACL lookup"):
            return (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.resource_type == resource_type,
                    AclEntry.resource_id.in_(rids),
                    AclEntry.principal_id.in_(pids),
                )
                .all()
            )

    def get_acl_rows_for_principals(
        self, resource_type: str, principal_ids: Iterable[str]
    ) -> List[AclEntry]:
        """Every ACL row of ``resource_type`` naming any of ``principal_ids``."""
        pids = [p for p in set(principal_ids) if p]
        if not pids:
            return []
        with store_errors("ACL principal lookup"):
            return (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.resource_type == resource_type,
                    AclEntry.principal_id.in_(pids),
                )
                .all()
            )

    # --- Vault sets ---

    def get_personal_vault_ids(self, owner_user_id: str) -> Set[str]:
        if not owner_user_id:
            return set()
        with store_errors("personal vault lookup"):
            rows = (
                self.db.query(Vault.id)
                .filter(Vault.owner_user_id == owner_user_id, Vault.type == "personal")
                .all()
            )
        return {r[0] for r in rows}

    def get_shared_vault_ids(self, vault_ids: Optional[Iterable[str]] = None) -> Set[str]:
        """Shared vault ids, optionally restricted to ``vault_ids``."""
        with store_errors("shared vault lookup"):
            query = self.db.query(Vault.id).filter(Vault.type == "shared")
            if vault_ids is not None:
                ids = list(set(vault_ids))
                if not ids:
                    return set()
                query = query.filter(Vault.id.in_(ids))
            rows = query.all()
        return {r[0] for r in rows}

    # --- Static groups ---

    def get_group_ids_for_member(self, user_id: Optional[str], email: Optional[str]) -> List[str]:
        """Static group ids whose membership names the user's id or email."""
        keys = [k for k in (user_id, email) if k]
        if not keys:
            return []
        with store_errors("group membership lookup"):
            rows = (
                self.db.query(GroupMember.group_id)
                .filter(or_(*[GroupMember.user_id == k for k in keys]))
                .all()
            )
        return sorted({r[0] for r in rows})
