"""Vault, folder and item models.

A vault is either ``personal`` (visible to its owner only, ACLs ignored) or
``shared`` (visibility decided by ACL entries). Folders form a tree inside a
single vault; ``path`` is materialized as ``"/root/child/"``. Items carry
metadata only, never secret material.
"""

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class Vault(Base):
    """Top-level container owned by a user."""

    __tablename__ = "vaults"
    __table_args__ = (
        Index("ix_vaults_owner_user_id", "owner_user_id"),
        Index("ix_vaults_type", "type"),
    )

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    owner_user_id = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default="personal")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_personal(self) -> bool:
        return self.type == "personal"

    @property
    def is_shared(self) -> bool:
        return self.type == "shared"


class Folder(Base):
    """A folder inside a vault. ``parent_id`` is NULL for root folders."""

    __tablename__ = "vault_folders"
    __table_args__ = (
        UniqueConstraint("vault_id", "parent_id", "name", name="uq_vault_folders_sibling_name"),
        Index("ix_vault_folders_vault_id", "vault_id"),
        Index("ix_vault_folders_parent_id", "parent_id"),
    )

    id = Column(String(50), primary_key=True)
    vault_id = Column(String(50), ForeignKey("vaults.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(String(50), ForeignKey("vault_folders.id", ondelete="CASCADE"), nullable=True)
    name = Column(String(255), nullable=False)
    path = Column(Text, nullable=False)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class Item(Base):
    """Vault item metadata. ``folder_id`` NULL means the item sits at the vault root."""

    __tablename__ = "vault_items"
    __table_args__ = (
        Index("ix_vault_items_vault_id", "vault_id"),
        Index("ix_vault_items_folder_id", "folder_id"),
    )

    id = Column(String(50), primary_key=True)
    vault_id = Column(String(50), ForeignKey("vaults.id", ondelete="CASCADE"), nullable=False)
    folder_id = Column(String(50), ForeignKey("vault_folders.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(20), nullable=False, default="credential")
    title = Column(String(255), nullable=False)
    username = Column(String(255), nullable=True)
    url = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    created_by = Column(String(255), nullable=False)
    updated_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
