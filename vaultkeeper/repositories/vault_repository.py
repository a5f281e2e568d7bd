"""CRUD repositories for vaults, folders and items.

Writes flush but never commit; services own the transaction boundary.
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_

from ..models.vault import Folder, Item, Vault
from .base import BaseRepository, store_errors


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class VaultRepository(BaseRepository[Vault]):
    model_class = Vault
    resource_type = "vault"

    def create(self, name: str, owner_user_id: str, vault_type: str) -> Vault:
        return self.add(Vault(
            id=new_id("vlt"),
            name=name,
            owner_user_id=owner_user_id,
            type=vault_type,
        ))

    def list_by_ids(
        self,
        vault_ids: Iterable[str],
        vault_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Vault]:
        ids = list(set(vault_ids))
        if not ids:
            return []
        with store_errors("vault listing"):
            query = self.db.query(Vault).filter(Vault.id.in_(ids))
            if vault_type:
                query = query.filter(Vault.type == vault_type)
            if search:
                query = query.filter(Vault.name.ilike(_like(search), escape="\\"))
            return query.order_by(Vault.name, Vault.id).all()


class FolderRepository(BaseRepository[Folder]):
    model_class = Folder
    resource_type = "folder"

    def create(
        self, vault_id: str, name: str, created_by: str, parent: Optional[Folder] = None
    ) -> Folder:
        return self.add(Folder(
            id=new_id("fld"),
            vault_id=vault_id,
            parent_id=parent.id if parent else None,
            name=name,
            path=build_folder_path(name, parent),
            created_by=created_by,
        ))

    def sibling_exists(
        self,
        vault_id: str,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        with store_errors("folder sibling lookup"):
            query = self.db.query(Folder.id).filter(
                Folder.vault_id == vault_id,
                Folder.name == name,
            )
            if parent_id is None:
                query = query.filter(Folder.parent_id.is_(None))
            else:
                query = query.filter(Folder.parent_id == parent_id)
            if exclude_id:
                query = query.filter(Folder.id != exclude_id)
            return query.first() is not None

    def list_filtered(
        self,
        vault_ids: Iterable[str],
        folder_ids: Iterable[str],
        vault_id: Optional[str] = None,
        parent_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Folder]:
        """Folders inside ``vault_ids`` or explicitly listed in ``folder_ids``."""
        vids = list(set(vault_ids))
        fids = list(set(folder_ids))
        if not vids and not fids:
            return []
        clauses = []
        if vids:
            clauses.append(Folder.vault_id.in_(vids))
        if fids:
            clauses.append(Folder.id.in_(fids))
        with store_errors("folder listing"):
            query = self.db.query(Folder).filter(or_(*clauses))
            if vault_id:
                query = query.filter(Folder.vault_id == vault_id)
            if parent_id:
                query = query.filter(Folder.parent_id == parent_id)
            if search:
                query = query.filter(Folder.name.ilike(_like(search), escape="\\"))
            return query.order_by(Folder.path, Folder.id).all()

    def ids_in_vault(self, vault_id: str) -> List[str]:
        with store_errors("folder id lookup"):
            return [r[0] for r in self.db.query(Folder.id).filter(Folder.vault_id == vault_id).all()]

    def rewrite_subtree_paths(self, folder: Folder, old_path: str) -> int:
        """Re-prefix descendants after ``folder.path`` changed from ``old_path``."""
        with store_errors("folder path rewrite"):
            descendants = (
                self.db.query(Folder)
                .filter(
                    Folder.vault_id == folder.vault_id,
                    Folder.id != folder.id,
                    Folder.path.like(_prefix_like(old_path), escape="\\"),
                )
                .all()
            )
            for child in descendants:
                child.path = folder.path + child.path[len(old_path):]
            self.db.flush()
        return len(descendants)


def _prefix_like(prefix: str) -> str:
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


def build_folder_path(name: str, parent: Optional[Folder]) -> str:
    """``"/name/"`` for a root, ``"<parent.path>name/"`` for a child."""
    if parent is None:
        return f"/{name}/"
    return f"{parent.path}{name}/"


class ItemRepository(BaseRepository[Item]):
    model_class = Item
    resource_type = "item"

    def create(
        self,
        vault_id: str,
        title: str,
        item_type: str,
        created_by: str,
        folder_id: Optional[str] = None,
        username: Optional[str] = None,
        url: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Item:
        return self.add(Item(
            id=new_id("itm"),
            vault_id=vault_id,
            folder_id=folder_id,
            type=item_type,
            title=title,
            username=username,
            url=url,
            tags=list(tags or []),
            created_by=created_by,
        ))

    def list_filtered(
        self,
        vault_ids: Iterable[str],
        folder_ids: Iterable[str],
        item_ids: Iterable[str] = (),
        foldered_vault_ids: Iterable[str] = (),
        vault_id: Optional[str] = None,
        within_folders: Optional[Iterable[str]] = None,
        search: Optional[str] = None,
    ) -> List[Item]:
        """Items inside ``vault_ids``, inside a folder in ``folder_ids``, or listed in ``item_ids``.

        ``foldered_vault_ids`` adds items of those vaults that sit in any folder.
        ``within_folders`` further narrows to items whose folder is in that set.
        """
        vids = list(set(vault_ids))
        fids = list(set(folder_ids))
        iids = list(set(item_ids))
        fvids = list(set(foldered_vault_ids) - set(vids))
        if not vids and not fids and not iids and not fvids:
            return []
        clauses = []
        if vids:
            clauses.append(Item.vault_id.in_(vids))
        if fids:
            clauses.append(Item.folder_id.in_(fids))
        if iids:
            clauses.append(Item.id.in_(iids))
        if fvids:
            clauses.append(and_(Item.vault_id.in_(fvids), Item.folder_id.isnot(None)))
        with store_errors("item listing"):
            query = self.db.query(Item).filter(or_(*clauses))
            if vault_id:
                query = query.filter(Item.vault_id == vault_id)
            if within_folders is not None:
                narrowed = list(set(within_folders))
                if not narrowed:
                    return []
                query = query.filter(Item.folder_id.in_(narrowed))
            if search:
                term = _like(search)
                query = query.filter(or_(
                    Item.title.ilike(term, escape="\\"),
                    Item.username.ilike(term, escape="\\"),
                    Item.url.ilike(term, escape="\\"),
                ))
            return query.order_by(Item.title, Item.id).all()

    def ids_in_folders(self, folder_ids: Iterable[str]) -> List[str]:
        ids = list(set(folder_ids))
        if not ids:
            return []
        with store_errors("item id lookup"):
            return [r[0] for r in self.db.query(Item.id).filter(Item.folder_id.in_(ids)).all()]

    def ids_in_vault(self, vault_id: str) -> List[str]:
        with store_errors("item id lookup"):
            return [r[0] for r in self.db.query(Item.id).filter(Item.vault_id == vault_id).all()]

    def delete_by_ids(self, item_ids: Iterable[str]) -> int:
        ids = list(set(item_ids))
        if not ids:
            return 0
        with store_errors("item delete"):
            return (
                self.db.query(Item)
                .filter(Item.id.in_(ids))
                .delete(synchronize_session=False)
            )
