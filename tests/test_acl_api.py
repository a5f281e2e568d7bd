"""Tests for ACL endpoints and their write-time validation."""

import pytest

from tests.conftest import headers_for, post_folder, post_item, post_vault

ROOT = headers_for("root", roles=["admin"])
BOB = headers_for("bob")


def _grant(client, resource_type, resource_id, principal_id, permissions, headers=ROOT,
           principal_type="user"):
    return client.post("/api/vault/acl", json={
        "resource_type": resource_type,
        "resource_id": resource_id,
        "principal_type": principal_type,
        "principal_id": principal_id,
        "permissions": permissions,
    }, headers=headers)


@pytest.fixture()
def shared_vault(client, auth_on):
    return post_vault(client, "shared", headers=ROOT, name="Team")


class TestAclCreate:

    def test_grant_and_list(self, client, shared_vault):
        resp = _grant(client, "vault", shared_vault, "bob", ["EDIT", "VIEW_METADATA"])
        assert resp.status_code == 201
        entry = resp.json()
        assert entry["permissions"] == ["READ_ONLY", "READ_WRITE"]
        assert entry["inherit"] is False
        assert entry["created_by"] == "root"

        listed = client.get(
            "/api/vault/acl",
            params={"resource_type": "vault", "resource_id": shared_vault},
            headers=ROOT,
        ).json()
        assert {e["principal_id"] for e in listed} == {"root", "bob"}

        assert client.get(f"/api/vault/vaults/{shared_vault}", headers=BOB).status_code == 200

    def test_duplicate_principal_409(self, client, shared_vault):
        assert _grant(client, "vault", shared_vault, "bob", ["READ_ONLY"]).status_code == 201
        assert _grant(client, "vault", shared_vault, "bob", ["DELETE"]).status_code == 409

    def test_unknown_token_400(self, client, shared_vault):
        resp = _grant(client, "vault", shared_vault, "bob", ["READ_ONLY", "SUPERUSER"])
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "permissions"

    def test_empty_permissions_400(self, client, shared_vault):
        assert _grant(client, "vault", shared_vault, "bob", []).status_code == 400

    def test_non_root_folder_400(self, client, shared_vault):
        root = post_folder(client, shared_vault, "Root", headers=ROOT)
        child = post_folder(client, shared_vault, "Child", root["id"], headers=ROOT)
        assert _grant(client, "folder", root["id"], "bob", ["READ_ONLY"]).status_code == 201
        assert _grant(client, "folder", child["id"], "bob", ["READ_ONLY"]).status_code == 400

    def test_personal_vault_resources_400(self, client, auth_on):
        personal = post_vault(client, headers=ROOT, name="Mine")
        item = post_item(client, personal, headers=ROOT)
        assert _grant(client, "vault", personal, "bob", ["READ_ONLY"]).status_code == 400
        assert _grant(client, "item", item["id"], "bob", ["READ_ONLY"]).status_code == 400

    def test_missing_resource_404(self, client, auth_on):
        assert _grant(client, "item", "itm-ghost", "bob", ["READ_ONLY"]).status_code == 404

    def test_requires_manage_acl(self, client, shared_vault):
        _grant(client, "vault", shared_vault, "bob", ["DELETE"])
        resp = _grant(client, "vault", shared_vault, "carol", ["READ_ONLY"], headers=BOB)
        assert resp.status_code == 403
        resp = client.get(
            "/api/vault/acl",
            params={"resource_type": "vault", "resource_id": shared_vault},
            headers=BOB,
        )
        assert resp.status_code == 403

    def test_manage_acl_without_ladder(self, client, shared_vault):
        _grant(client, "vault", shared_vault, "bob", ["MANAGE_ACL"])
        assert _grant(client, "vault", shared_vault, "carol", ["READ_ONLY"], headers=BOB).status_code == 201
        resp = client.put(f"/api/vault/vaults/{shared_vault}", json={"name": "x"}, headers=BOB)
        assert resp.status_code == 403

    def test_role_principal(self, client, shared_vault):
        assert _grant(client, "vault", shared_vault, "auditor", ["READ_ONLY"],
                      principal_type="role").status_code == 201
        auditor = headers_for("dana", roles=["auditor"])
        assert client.get(f"/api/vault/vaults/{shared_vault}", headers=auditor).status_code == 200

    def test_invalid_resource_type_422(self, client, shared_vault):
        assert _grant(client, "tenant", shared_vault, "bob", ["READ_ONLY"]).status_code == 422


class TestAclDelete:

    def test_revoke_takes_effect_immediately(self, client, shared_vault):
        entry = _grant(client, "vault", shared_vault, "bob", ["READ_ONLY"]).json()
        assert client.get(f"/api/vault/vaults/{shared_vault}", headers=BOB).status_code == 200

        assert client.delete(f"/api/vault/acl/{entry['id']}", headers=ROOT).status_code == 204
        assert client.get(f"/api/vault/vaults/{shared_vault}", headers=BOB).status_code == 404

    def test_delete_requires_manage_acl(self, client, shared_vault):
        entry = _grant(client, "vault", shared_vault, "bob", ["DELETE"]).json()
        assert client.delete(f"/api/vault/acl/{entry['id']}", headers=BOB).status_code == 403

    def test_delete_missing_404(self, client, auth_on):
        resp = client.delete("/api/vault/acl/acl-ghost", headers=ROOT)
        assert resp.status_code == 404
        assert resp.json()["error"] == "ACL_NOT_FOUND"
