"""Write-side repositories for ACL entries and static groups."""

from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError

from ..exceptions import ConflictError
from ..models.acl import AclEntry, GroupMember, StaticGroup
from .base import BaseRepository, store_errors
from .vault_repository import new_id


class AclRepository(BaseRepository[AclEntry]):
    model_class = AclEntry
    resource_type = "acl"

    def list_for_resource(self, resource_type: str, resource_id: str) -> List[AclEntry]:
        with store_errors("ACL listing"):
            return (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.resource_type == resource_type,
                    AclEntry.resource_id == resource_id,
                )
                .order_by(AclEntry.principal_type, AclEntry.principal_id)
                .all()
            )

    def find(
        self, resource_type: str, resource_id: str, principal_type: str, principal_id: str
    ) -> Optional[AclEntry]:
        with store_errors("ACL lookup"):
            return (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.resource_type == resource_type,
                    AclEntry.resource_id == resource_id,
                    AclEntry.principal_type == principal_type,
                    AclEntry.principal_id == principal_id,
                )
                .first()
            )

    def create(
        self,
        resource_type: str,
        resource_id: str,
        principal_type: str,
        principal_id: str,
        permissions: List[str],
        created_by: str,
    ) -> AclEntry:
        entry = AclEntry(
            id=new_id("acl"),
            resource_type=resource_type,
            resource_id=resource_id,
            principal_type=principal_type,
            principal_id=principal_id,
            permissions=list(permissions),
            inherit=False,
            created_by=created_by,
        )
        try:
            self.db.add(entry)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            # Lost a race against a concurrent insert for the same principal.
            raise ConflictError(
                "An ACL entry already exists for this principal on this resource",
                details={"principal_type": principal_type, "principal_id": principal_id},
            ) from e
        return entry

    def delete_for_resources(self, resource_type: str, resource_ids: Iterable[str]) -> int:
        """Remove every entry attached to deleted resources."""
        ids = list(set(resource_ids))
        if not ids:
            return 0
        with store_errors("ACL cleanup"):
            count = (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.resource_type == resource_type,
                    AclEntry.resource_id.in_(ids),
                )
                .delete(synchronize_session=False)
            )
        return count

    def delete_for_principal(self, principal_type: str, principal_id: str) -> int:
        """Remove every entry granted to one principal."""
        with store_errors("ACL principal cleanup"):
            return (
                self.db.query(AclEntry)
                .filter(
                    AclEntry.principal_type == principal_type,
                    AclEntry.principal_id == principal_id,
                )
                .delete(synchronize_session=False)
            )


class GroupRepository(BaseRepository[StaticGroup]):
    model_class = StaticGroup
    resource_type = "group"

    def list_all(self) -> List[StaticGroup]:
        with store_errors("group listing"):
            return self._base_query().order_by(StaticGroup.created_at.desc(), StaticGroup.name).all()

    def find_by_name(self, name: str) -> Optional[StaticGroup]:
        with store_errors("group lookup"):
            return self._base_query().filter(StaticGroup.name == name).first()

    def create(self, name: str, description: Optional[str] = None) -> StaticGroup:
        group = StaticGroup(id=new_id("grp"), name=name, description=description)
        try:
            self.db.add(group)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("A group with this name already exists", details={"name": name}) from e
        return group

    def list_members(self, group_id: str) -> List[GroupMember]:
        with store_errors("group member listing"):
            return (
                self.db.query(GroupMember)
                .filter(GroupMember.group_id == group_id)
                .order_by(GroupMember.user_id)
                .all()
            )

    def find_member(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        with store_errors("group member lookup"):
            return (
                self.db.query(GroupMember)
                .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
                .first()
            )

    def add_member(self, group_id: str, user_id: str) -> GroupMember:
        member = GroupMember(id=new_id("gm"), group_id=group_id, user_id=user_id)
        try:
            self.db.add(member)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                "User is already a member of this group",
                details={"group_id": group_id, "user_id": user_id},
            ) from e
        return member

    def remove_members(self, group_id: str) -> int:
        with store_errors("group member cleanup"):
            return (
                self.db.query(GroupMember)
                .filter(GroupMember.group_id == group_id)
                .delete(synchronize_session=False)
            )

    def remove_member(self, member: GroupMember) -> None:
        with store_errors("group member delete"):
            self.db.delete(member)
            self.db.flush()
