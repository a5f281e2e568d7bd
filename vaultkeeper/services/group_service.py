"""Static group management. Every operation is admin-only.

Static groups feed the principal resolver: a member's user id or email is
matched against ``vault_group_members`` on each request, and the group id then
takes part in ACL matching. Deleting a group also removes its memberships and
every ACL entry granted to it.
"""

import logging
from typing import List

from ..exceptions import ConflictError, ForbiddenError, ResourceNotFoundError
from ..models.acl import GroupMember, StaticGroup
from ..repositories.acl_repository import AclRepository, GroupRepository
from ..schemas.group import GroupCreate, GroupUpdate
from .base import AuthorizedService

logger = logging.getLogger(__name__)


class GroupService(AuthorizedService):
    """Group and membership CRUD on behalf of an admin caller."""

    scope_entity = "groups"

    def __init__(self, db, principal, checker=None, settings=None):
        super().__init__(db, principal, checker=checker, settings=settings)
        self.group_repo = GroupRepository(db)
        self.acl_repo = AclRepository(db)

    def list_groups(self) -> List[StaticGroup]:
        self._require_admin()
        return self.group_repo.list_all()

    def get_group(self, group_id: str) -> StaticGroup:
        self._require_admin()
        return self.group_repo.get_by_id(group_id)

    def create_group(self, data: GroupCreate) -> StaticGroup:
        self._require_admin()
        self._ensure_unique_name(data.name)
        group = self.group_repo.create(data.name, data.description)
        self.db.commit()
        self.db.refresh(group)
        logger.info(
            "Group created",
            extra={"group_id": group.id, "group_name": group.name, "user_id": self.principal.user_id},
        )
        return group

    def update_group(self, group_id: str, data: GroupUpdate) -> StaticGroup:
        self._require_admin()
        group = self.group_repo.get_by_id(group_id)
        if data.name is not None and data.name != group.name:
            self._ensure_unique_name(data.name)
            group.name = data.name
        if data.description is not None:
            group.description = data.description
        self.db.commit()
        self.db.refresh(group)
        return group

    def delete_group(self, group_id: str) -> None:
        self._require_admin()
        group = self.group_repo.get_by_id(group_id)
        members = self.group_repo.remove_members(group.id)
        grants = self.acl_repo.delete_for_principal("group", group.id)
        self.group_repo.delete(group)
        self.db.commit()
        logger.info(
            "Group deleted",
            extra={"group_id": group_id, "members": members, "acl_entries": grants,
                   "user_id": self.principal.user_id},
        )

    def list_members(self, group_id: str) -> List[GroupMember]:
        self._require_admin()
        self.group_repo.get_by_id(group_id)
        return self.group_repo.list_members(group_id)

    def add_member(self, group_id: str, user_id: str) -> GroupMember:
        self._require_admin()
        self.group_repo.get_by_id(group_id)
        if self.group_repo.find_member(group_id, user_id):
            raise ConflictError(
                "User is already a member of this group",
                details={"group_id": group_id, "user_id": user_id},
            )
        member = self.group_repo.add_member(group_id, user_id)
        self.db.commit()
        self.db.refresh(member)
        logger.info(
            "Group member added",
            extra={"group_id": group_id, "member": user_id, "user_id": self.principal.user_id},
        )
        return member

    def remove_member(self, group_id: str, user_id: str) -> None:
        self._require_admin()
        self.group_repo.get_by_id(group_id)
        member = self.group_repo.find_member(group_id, user_id)
        if member is None:
            raise ResourceNotFoundError("member", user_id)
        self.group_repo.remove_member(member)
        self.db.commit()
        logger.info(
            "Group member removed",
            extra={"group_id": group_id, "member": user_id, "user_id": self.principal.user_id},
        )

    def _require_admin(self) -> None:
        if not self.is_admin:
            raise ForbiddenError("Only admins can manage groups")

    def _ensure_unique_name(self, name: str) -> None:
        if self.group_repo.find_by_name(name):
            raise ConflictError("A group with this name already exists", details={"name": name})
