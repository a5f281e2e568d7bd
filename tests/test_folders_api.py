"""Tests for folder endpoints: tree paths, moves, deletes and capability flags."""

from vaultkeeper.repositories.acl_repository import AclRepository
from tests.conftest import grant, headers_for, post_folder, post_item, post_vault

ROOT = headers_for("root", roles=["admin"])
BOB = headers_for("bob")


class TestFolderTree:

    def test_paths_are_materialized(self, client):
        vault_id = post_vault(client)
        root = post_folder(client, vault_id, "Root")
        child = post_folder(client, vault_id, "Child", root["id"])
        assert root["path"] == "/Root/"
        assert child["path"] == "/Root/Child/"
        assert child["parent_id"] == root["id"]

    def test_duplicate_sibling_409(self, client):
        vault_id = post_vault(client)
        post_folder(client, vault_id, "Dup")
        resp = client.post("/api/vault/folders", json={"vault_id": vault_id, "name": "Dup"})
        assert resp.status_code == 409

    def test_parent_in_other_vault_rejected(self, client):
        v1 = post_vault(client, name="One")
        v2 = post_vault(client, name="Two")
        foreign = post_folder(client, v2, "Foreign")
        resp = client.post(
            "/api/vault/folders", json={"vault_id": v1, "name": "X", "parent_id": foreign["id"]}
        )
        assert resp.status_code == 400

    def test_rename_rewrites_descendant_paths(self, client):
        vault_id = post_vault(client)
        root = post_folder(client, vault_id, "Root")
        child = post_folder(client, vault_id, "Child", root["id"])
        leaf = post_folder(client, vault_id, "Leaf", child["id"])

        resp = client.put(f"/api/vault/folders/{root['id']}", json={"name": "Top"})
        assert resp.status_code == 200
        assert resp.json()["path"] == "/Top/"
        assert client.get(f"/api/vault/folders/{leaf['id']}").json()["path"] == "/Top/Child/Leaf/"

    def test_list_by_parent(self, client):
        vault_id = post_vault(client)
        root = post_folder(client, vault_id, "Root")
        post_folder(client, vault_id, "A", root["id"])
        post_folder(client, vault_id, "B", root["id"])
        post_folder(client, vault_id, "Elsewhere")
        listed = client.get("/api/vault/folders", params={"parent_id": root["id"]}).json()
        assert [f["name"] for f in listed] == ["A", "B"]


class TestFolderMove:

    def test_move_to_root_and_back(self, client):
        vault_id = post_vault(client)
        a = post_folder(client, vault_id, "A")
        b = post_folder(client, vault_id, "B", a["id"])
        c = post_folder(client, vault_id, "C", b["id"])

        resp = client.post(f"/api/vault/folders/{b['id']}/move", json={"parent_id": None})
        assert resp.status_code == 200
        assert resp.json()["path"] == "/B/"
        assert client.get(f"/api/vault/folders/{c['id']}").json()["path"] == "/B/C/"

        resp = client.post(f"/api/vault/folders/{b['id']}/move", json={"parent_id": a["id"]})
        assert resp.json()["path"] == "/A/B/"

    def test_cannot_move_into_own_subtree(self, client):
        vault_id = post_vault(client)
        a = post_folder(client, vault_id, "A")
        b = post_folder(client, vault_id, "B", a["id"])
        for target in (a["id"], b["id"]):
            resp = client.post(f"/api/vault/folders/{a['id']}/move", json={"parent_id": target})
            assert resp.status_code == 400

    def test_cannot_move_across_vaults(self, client):
        a = post_folder(client, post_vault(client, name="One"), "A")
        b = post_folder(client, post_vault(client, name="Two"), "B")
        resp = client.post(f"/api/vault/folders/{a['id']}/move", json={"parent_id": b["id"]})
        assert resp.status_code == 400

    def test_move_into_missing_parent_404(self, client):
        a = post_folder(client, post_vault(client), "A")
        resp = client.post(f"/api/vault/folders/{a['id']}/move", json={"parent_id": "fld-missing"})
        assert resp.status_code == 404

    def test_name_clash_at_target_409(self, client):
        vault_id = post_vault(client)
        a = post_folder(client, vault_id, "A")
        post_folder(client, vault_id, "Same")
        nested = post_folder(client, vault_id, "Same", a["id"])
        resp = client.post(f"/api/vault/folders/{nested['id']}/move", json={"parent_id": None})
        assert resp.status_code == 409

    def test_nesting_root_revokes_its_folder_grants(self, client, db, auth_on):
        vault_id = post_vault(client, "shared", headers=ROOT)
        r = post_folder(client, vault_id, "R", headers=ROOT)
        s = post_folder(client, vault_id, "S", headers=ROOT)
        grant(db, "folder", r["id"], "bob", ["DELETE"])
        assert client.get(f"/api/vault/folders/{r['id']}", headers=BOB).json()["can_delete"] is True

        move = f"/api/vault/folders/{r['id']}/move"
        assert client.post(move, json={"parent_id": s["id"]}, headers=ROOT).status_code == 200
        assert AclRepository(db).list_for_resource("folder", r["id"]) == []
        assert client.get(f"/api/vault/folders/{r['id']}", headers=BOB).status_code == 404

        # Back at the root, the old grant stays gone.
        assert client.post(move, json={"parent_id": None}, headers=ROOT).status_code == 200
        assert client.get(f"/api/vault/folders/{r['id']}", headers=BOB).status_code == 404


class TestFolderDelete:

    def test_delete_removes_subtree_and_items(self, client):
        vault_id = post_vault(client)
        a = post_folder(client, vault_id, "A")
        b = post_folder(client, vault_id, "B", a["id"])
        deep_item = post_item(client, vault_id, b["id"])
        loose_item = post_item(client, vault_id)

        assert client.delete(f"/api/vault/folders/{a['id']}").status_code == 204
        assert client.get(f"/api/vault/folders/{b['id']}").status_code == 404
        assert client.get(f"/api/vault/items/{deep_item['id']}").status_code == 404
        assert client.get(f"/api/vault/items/{loose_item['id']}").status_code == 200


class TestFolderAccess:

    def test_owner_flags(self, client):
        folder = post_folder(client, post_vault(client), "Mine")
        data = client.get(f"/api/vault/folders/{folder['id']}").json()
        assert data["can_edit"] and data["can_share"] and data["can_move"] and data["can_delete"]
        assert data["permission_level"] == "full"

    def test_root_folder_grant_flags_and_limits(self, client, db, auth_on):
        vault_id = post_vault(client, "shared", headers=ROOT)
        root = post_folder(client, vault_id, "Ops", headers=ROOT)
        child = post_folder(client, vault_id, "Keys", root["id"], headers=ROOT)
        grant(db, "folder", root["id"], "bob", ["EDIT"])

        data = client.get(f"/api/vault/folders/{child['id']}", headers=BOB).json()
        assert data["can_edit"] is True
        assert data["can_delete"] is False
        assert data["permission_level"] == "read_write"

        # READ_WRITE on the root lets bob create below it, not at the vault root.
        post_folder(client, vault_id, "Bob's", root["id"], headers=BOB)
        resp = client.post(
            "/api/vault/folders", json={"vault_id": vault_id, "name": "Top"}, headers=BOB
        )
        assert resp.status_code == 403
        assert client.delete(f"/api/vault/folders/{child['id']}", headers=BOB).status_code == 403

    def test_listing_follows_root_grant(self, client, db, auth_on):
        vault_id = post_vault(client, "shared", headers=ROOT)
        granted = post_folder(client, vault_id, "Granted", headers=ROOT)
        post_folder(client, vault_id, "Inside", granted["id"], headers=ROOT)
        post_folder(client, vault_id, "Hidden", headers=ROOT)
        grant(db, "folder", granted["id"], "bob", ["READ_ONLY"])

        names = {f["name"] for f in client.get("/api/vault/folders", headers=BOB).json()}
        assert names == {"Granted", "Inside"}

    def test_unreadable_folder_is_404(self, client, auth_on):
        vault_id = post_vault(client, "shared", headers=ROOT)
        folder = post_folder(client, vault_id, "Secret", headers=ROOT)
        resp = client.get(f"/api/vault/folders/{folder['id']}", headers=BOB)
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"
