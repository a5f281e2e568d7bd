"""ACL entries and static groups.

An ACL entry grants a principal (user id/email, group id or role name) a set
of permission tokens on one vault, root folder or item. Static groups back
the membership half of principal resolution.
"""

from sqlalchemy import Column, Index, String, Text, DateTime, Boolean, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class AclEntry(Base):
    """Access grant on a single resource.

    ``inherit`` is kept for compatibility with older rows and is always
    written as False. Folder entries may only target root folders.
    """

    __tablename__ = "vault_acl"
    __table_args__ = (
        UniqueConstraint(
            "resource_type", "resource_id", "principal_type", "principal_id",
            name="uq_vault_acl_resource_principal",
        ),
        Index("ix_vault_acl_resource", "resource_type", "resource_id"),
        Index("ix_vault_acl_principal_id", "principal_id"),
    )

    id = Column(String(50), primary_key=True)
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(String(50), nullable=False)
    principal_type = Column(String(20), nullable=False)
    principal_id = Column(String(255), nullable=False)
    permissions = Column(JSON, nullable=False, default=list)
    inherit = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class StaticGroup(Base):
    """Administrator-managed group."""

    __tablename__ = "vault_groups"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class GroupMember(Base):
    """Membership row. ``user_id`` holds either a user id or an email."""

    __tablename__ = "vault_group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_vault_group_members"),
        Index("ix_vault_group_members_user_id", "user_id"),
    )

    id = Column(String(50), primary_key=True)
    group_id = Column(String(50), ForeignKey("vault_groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
