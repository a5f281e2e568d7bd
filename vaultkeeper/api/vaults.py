"""Vault API: list, create, read, rename, delete.

Thin router. Scope and ACL decisions happen in VaultService.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import get_principal
from ..database import get_db
from ..schemas.vault import VaultCreate, VaultResponse, VaultUpdate
from ..services.principal_service import Principal
from ..services.vault_service import VaultService

router = APIRouter(prefix="/api/vault/vaults", tags=["vaults"])


@router.get("", response_model=List[VaultResponse])
def list_vaults(
    type: Optional[Literal["personal", "shared"]] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Vaults in the caller's read scope."""
    return VaultService(db, principal).list_vaults(vault_type=type, search=search)


@router.post("", response_model=VaultResponse, status_code=201)
def create_vault(
    data: VaultCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Create a vault owned by the caller. Shared vaults are admin-only."""
    return VaultService(db, principal).create_vault(data)


@router.get("/{vault_id}", response_model=VaultResponse)
def get_vault(
    vault_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return VaultService(db, principal).get_vault(vault_id)


@router.put("/{vault_id}", response_model=VaultResponse)
def update_vault(
    vault_id: str,
    data: VaultUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Rename a vault. Requires READ_WRITE."""
    return VaultService(db, principal).update_vault(vault_id, data)


@router.delete("/{vault_id}", status_code=204)
def delete_vault(
    vault_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Delete a vault and everything in it. Requires DELETE."""
    VaultService(db, principal).delete_vault(vault_id)
