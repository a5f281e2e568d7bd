"""Tests for scope mode resolution and visible-set computation."""

import pytest

from vaultkeeper.exceptions import ForbiddenError
from vaultkeeper.repositories.resource_store import ResourceStore
from vaultkeeper.services.scope_service import (
    AccessScope,
    ScopeMode,
    SettingsActionChecker,
    build_action_checker,
    enforce_mutation_scope,
    resolve_scope_mode,
    resolve_visible_scope,
)
from tests.conftest import add_folder, add_item, add_vault, grant, make_principal


class _RecordingChecker:
    def __init__(self, granted=()):
        self.granted_keys = set(granted)
        self.probes = []

    def granted(self, principal, action_key):
        self.probes.append(action_key)
        return action_key in self.granted_keys


class _ExplodingStore:
    def __getattr__(self, name):
        raise AssertionError(f"store touched: {name}")


ALICE = make_principal("alice")


class TestResolveScopeMode:

    def test_most_restrictive_entity_grant_wins(self):
        checker = _RecordingChecker({"items.read.scope.own", "items.read.scope.any"})
        assert resolve_scope_mode(checker, ALICE, "items", "read") == ScopeMode.OWN

    def test_entity_key_beats_resource_wide_key(self):
        checker = _RecordingChecker({"items.read.scope.any", "read.scope.none"})
        assert resolve_scope_mode(checker, ALICE, "items", "read") == ScopeMode.ANY

    def test_falls_back_to_resource_wide_key(self):
        checker = _RecordingChecker({"write.scope.ldd"})
        assert resolve_scope_mode(checker, ALICE, "folders", "write") == ScopeMode.LDD

    def test_defaults_to_own(self):
        checker = _RecordingChecker()
        assert resolve_scope_mode(checker, ALICE, "vaults", "delete") == ScopeMode.OWN
        assert checker.probes == [
            "vaults.delete.scope.none", "vaults.delete.scope.own",
            "vaults.delete.scope.ldd", "vaults.delete.scope.any",
            "delete.scope.none", "delete.scope.own",
            "delete.scope.ldd", "delete.scope.any",
        ]


class TestSettingsActionChecker:

    def test_role_and_wildcard_grants(self):
        checker = SettingsActionChecker({
            "*": ["read.scope.own"],
            "auditor": ["read.scope.any"],
        })
        auditor = make_principal("a", roles=("auditor",))
        assert checker.granted(ALICE, "read.scope.own")
        assert not checker.granted(ALICE, "read.scope.any")
        assert checker.granted(auditor, "read.scope.any")

    def test_default_grants_give_any(self):
        checker = build_action_checker()
        assert resolve_scope_mode(checker, ALICE, "items", "read") == ScopeMode.ANY

    def test_explicit_empty_grants(self):
        checker = build_action_checker({})
        assert resolve_scope_mode(checker, ALICE, "items", "read") == ScopeMode.OWN


class TestResolveVisibleScope:

    def test_none_never_touches_store(self):
        scope = resolve_visible_scope(_ExplodingStore(), ALICE, ScopeMode.NONE)
        assert scope == AccessScope()
        assert scope.is_empty

    @pytest.mark.parametrize("mode", [ScopeMode.OWN, ScopeMode.LDD])
    def test_own_is_personal_vaults_only(self, db, mode):
        mine = add_vault(db, owner="alice", vault_type="personal")
        add_vault(db, owner="bob", vault_type="personal")
        shared = add_vault(db, owner="bob", vault_type="shared")
        grant(db, "vault", shared.id, "alice", ["READ_ONLY"])

        scope = resolve_visible_scope(ResourceStore(db), ALICE, mode)
        assert scope.vault_ids == scope.open_vault_ids == {mine.id}
        assert not scope.folder_ids and not scope.item_ids

    def test_any_adds_acl_reachable_resources(self, db):
        mine = add_vault(db, owner="alice", vault_type="personal")
        shared = add_vault(db, owner="bob", vault_type="shared", name="Shared")
        other = add_vault(db, owner="bob", vault_type="shared", name="Other")
        root = add_folder(db, other, "Root")
        child = add_folder(db, other, "Child", parent=root)
        item_vault = add_vault(db, owner="bob", vault_type="shared", name="Items")
        item = add_item(db, item_vault)
        grant(db, "vault", shared.id, "alice", ["READ_ONLY"])
        grant(db, "folder", root.id, "alice", ["READ_ONLY"])
        grant(db, "item", item.id, "alice", ["READ_ONLY"])

        scope = resolve_visible_scope(ResourceStore(db), ALICE, ScopeMode.ANY)
        assert scope.vault_ids == {mine.id, shared.id}
        assert scope.open_vault_ids == {mine.id}
        assert scope.folder_ids == {root.id, child.id}
        assert scope.item_ids == {item.id}

    def test_grants_on_foreign_personal_vaults_do_not_leak(self, db):
        theirs = add_vault(db, owner="bob", vault_type="personal")
        folder = add_folder(db, theirs, "Private")
        item = add_item(db, theirs)
        grant(db, "vault", theirs.id, "alice", ["READ_ONLY"])
        grant(db, "folder", folder.id, "alice", ["READ_ONLY"])
        grant(db, "item", item.id, "alice", ["READ_ONLY"])

        scope = resolve_visible_scope(ResourceStore(db), ALICE, ScopeMode.ANY)
        assert scope.is_empty

    def test_non_root_folder_grants_ignored(self, db):
        shared = add_vault(db)
        root = add_folder(db, shared, "Root")
        child = add_folder(db, shared, "Child", parent=root)
        grant(db, "folder", child.id, "alice", ["READ_ONLY"])

        scope = resolve_visible_scope(ResourceStore(db), ALICE, ScopeMode.ANY)
        assert scope.folder_ids == frozenset()

    def test_admin_sees_every_shared_vault(self, db):
        s1 = add_vault(db, name="S1")
        s2 = add_vault(db, name="S2")
        add_vault(db, owner="bob", vault_type="personal")
        admin = make_principal("root", roles=("admin",))
        scope = resolve_visible_scope(ResourceStore(db), admin, ScopeMode.ANY)
        assert scope.vault_ids == {s1.id, s2.id}
        assert scope.open_vault_ids == {s1.id, s2.id}


class _Vault:
    def __init__(self, owner, vault_type):
        self.owner_user_id = owner
        self.type = vault_type

    @property
    def is_personal(self):
        return self.type == "personal"


class TestEnforceMutationScope:

    def test_none_always_forbidden(self):
        with pytest.raises(ForbiddenError) as exc:
            enforce_mutation_scope(ScopeMode.NONE, _Vault("alice", "personal"), ALICE)
        assert exc.value.details["reason"] == "ScopeNone"

    @pytest.mark.parametrize("mode", [ScopeMode.OWN, ScopeMode.LDD])
    def test_own_limits_to_own_personal_vaults(self, mode):
        enforce_mutation_scope(mode, _Vault("alice", "personal"), ALICE)
        for vault in (_Vault("bob", "personal"), _Vault("alice", "shared")):
            with pytest.raises(ForbiddenError) as exc:
                enforce_mutation_scope(mode, vault, ALICE)
            assert exc.value.details["reason"] == "ScopeOwn"

    def test_any_defers_to_acl(self):
        enforce_mutation_scope(ScopeMode.ANY, _Vault("bob", "shared"), ALICE)
