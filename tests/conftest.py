"""Shared test fixtures for the VaultKeeper test suite.

Tests run against an in-memory SQLite database shared through a single
connection. The schema is dropped and recreated before every test, so each
test starts from an empty store.
"""

import os

# Force auth off and use the in-memory database before any app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from typing import Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from vaultkeeper.database import Base, get_db, engine, SessionLocal
from vaultkeeper.main import app
from vaultkeeper.core.token_factory import create_token
from vaultkeeper.core.config import settings
from vaultkeeper.middleware.request_context import _rate_buckets
from vaultkeeper.models import AclEntry, Folder, Item, Vault
from vaultkeeper.repositories.acl_repository import AclRepository, GroupRepository
from vaultkeeper.repositories.vault_repository import (
    FolderRepository,
    ItemRepository,
    VaultRepository,
)
from vaultkeeper.services.principal_service import Principal


@pytest.fixture(autouse=True)
def _reset_schema():
    """Recreate every table before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    _rate_buckets.clear()  # Reset rate limiter so tests don't hit 429
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_on(monkeypatch):
    """Enable bearer-token authentication for the duration of one test."""
    monkeypatch.setattr(settings, "auth_enabled", True)


def headers_for(
    user_id: str,
    roles: Sequence[str] = (),
    email: Optional[str] = None,
    groups: Sequence[str] = (),
) -> dict:
    """Bearer headers for a caller. Only meaningful with ``auth_on``."""
    token = create_token(
        subject=user_id,
        secret=settings.jwt_secret_key,
        email=email,
        roles=roles,
        groups=groups,
    )
    return {"Authorization": f"Bearer {token}"}


def make_principal(user_id: str = "alice", roles=(), email=None, groups=()) -> Principal:
    return Principal(
        user_id=user_id,
        user_email=email,
        roles=frozenset(roles),
        group_ids=frozenset(groups),
    )


# --- Store factories: write straight through the repositories ---

def add_vault(db, owner: str = "alice", vault_type: str = "shared", name: str = "Vault") -> Vault:
    vault = VaultRepository(db).create(name, owner, vault_type)
    db.commit()
    return vault


def add_folder(db, vault: Vault, name: str = "Folder", parent: Optional[Folder] = None) -> Folder:
    folder = FolderRepository(db).create(vault.id, name, vault.owner_user_id, parent=parent)
    db.commit()
    return folder


def add_item(db, vault: Vault, folder: Optional[Folder] = None, title: str = "Item") -> Item:
    item = ItemRepository(db).create(
        vault_id=vault.id,
        title=title,
        item_type="credential",
        created_by=vault.owner_user_id,
        folder_id=folder.id if folder else None,
    )
    db.commit()
    return item


def grant(
    db,
    resource_type: str,
    resource_id: str,
    principal_id: str,
    permissions: Sequence[str],
    principal_type: str = "user",
) -> AclEntry:
    entry = AclRepository(db).create(
        resource_type, resource_id, principal_type, principal_id,
        list(permissions), created_by="test",
    )
    db.commit()
    return entry


def add_group(db, name: str, members: Sequence[str] = ()) -> str:
    repo = GroupRepository(db)
    group = repo.create(name)
    for member in members:
        repo.add_member(group.id, member)
    db.commit()
    return group.id


# --- API factories: create resources through the HTTP surface ---

def post_vault(client, vault_type: str = "personal", headers: Optional[dict] = None, name: str = "V") -> str:
    resp = client.post("/api/vault/vaults", json={"name": name, "type": vault_type}, headers=headers or {})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def post_folder(client, vault_id: str, name: str, parent_id: Optional[str] = None,
                headers: Optional[dict] = None) -> dict:
    resp = client.post(
        "/api/vault/folders",
        json={"vault_id": vault_id, "name": name, "parent_id": parent_id},
        headers=headers or {},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def post_item(client, vault_id: str, folder_id: Optional[str] = None, title: str = "Item",
              headers: Optional[dict] = None) -> dict:
    resp = client.post(
        "/api/vault/items",
        json={"vault_id": vault_id, "folder_id": folder_id, "title": title},
        headers=headers or {},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
