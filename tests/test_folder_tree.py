"""Tests for descendant expansion and root lookup."""

from vaultkeeper.models import Folder
from vaultkeeper.repositories.resource_store import ResourceStore
from vaultkeeper.services.folder_tree_service import (
    expand_descendants,
    find_root_folder,
    is_descendant_or_self,
)
from tests.conftest import add_folder, add_vault


class _CountingStore:
    """Wraps a store and counts children queries."""

    def __init__(self, store):
        self.store = store
        self.calls = 0

    def get_folders_by_parent(self, parent_ids):
        self.calls += 1
        return self.store.get_folders_by_parent(parent_ids)


class TestExpandDescendants:

    def test_expands_whole_subtree(self, db):
        vault = add_vault(db)
        a = add_folder(db, vault, "A")
        b = add_folder(db, vault, "B", parent=a)
        c = add_folder(db, vault, "C", parent=a)
        d = add_folder(db, vault, "D", parent=b)
        add_folder(db, vault, "Other")

        assert expand_descendants(ResourceStore(db), [a.id]) == {a.id, b.id, c.id, d.id}

    def test_empty_input(self, db):
        assert expand_descendants(ResourceStore(db), []) == set()

    def test_leaf_returns_itself(self, db):
        vault = add_vault(db)
        leaf = add_folder(db, vault, "Leaf")
        assert expand_descendants(ResourceStore(db), [leaf.id]) == {leaf.id}

    def test_one_query_per_level(self, db):
        vault = add_vault(db)
        a = add_folder(db, vault, "A")
        b = add_folder(db, vault, "B", parent=a)
        add_folder(db, vault, "C", parent=b)
        store = _CountingStore(ResourceStore(db))
        expand_descendants(store, [a.id])
        # Two levels below A, plus the level that yields nothing.
        assert store.calls == 3

    def test_cycle_terminates(self, db):
        vault = add_vault(db)
        a = add_folder(db, vault, "A")
        b = add_folder(db, vault, "B", parent=a)
        db.query(Folder).filter(Folder.id == a.id).update({"parent_id": b.id})
        db.commit()
        assert expand_descendants(ResourceStore(db), [a.id]) == {a.id, b.id}


class TestFindRootFolder:

    def test_walks_to_root(self, db):
        vault = add_vault(db)
        root = add_folder(db, vault, "Root")
        mid = add_folder(db, vault, "Mid", parent=root)
        leaf = add_folder(db, vault, "Leaf", parent=mid)
        assert find_root_folder(ResourceStore(db), leaf).id == root.id

    def test_root_is_its_own_root(self, db):
        vault = add_vault(db)
        root = add_folder(db, vault, "Root")
        assert find_root_folder(ResourceStore(db), root).id == root.id

    def test_cross_vault_parent_returns_none(self, db):
        v1 = add_vault(db, name="One")
        v2 = add_vault(db, name="Two")
        foreign = add_folder(db, v2, "Foreign")
        child = add_folder(db, v1, "Child")
        child.parent_id = foreign.id
        db.commit()
        assert find_root_folder(ResourceStore(db), child) is None

    def test_cycle_returns_none(self, db):
        vault = add_vault(db)
        a = add_folder(db, vault, "A")
        b = add_folder(db, vault, "B", parent=a)
        a.parent_id = b.id
        db.commit()
        assert find_root_folder(ResourceStore(db), b) is None


class TestIsDescendantOrSelf:

    def test_self_and_descendant(self, db):
        vault = add_vault(db)
        a = add_folder(db, vault, "A")
        b = add_folder(db, vault, "B", parent=a)
        store = ResourceStore(db)
        assert is_descendant_or_self(store, a.id, a.id)
        assert is_descendant_or_self(store, a.id, b.id)
        assert not is_descendant_or_self(store, b.id, a.id)
