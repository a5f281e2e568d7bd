"""ACL API. Every endpoint requires MANAGE_ACL on the target resource."""

from typing import List, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import get_principal
from ..database import get_db
from ..schemas.acl import AclEntryCreate, AclEntryResponse
from ..services.acl_service import AclService
from ..services.principal_service import Principal

router = APIRouter(prefix="/api/vault/acl", tags=["acl"])


@router.get("", response_model=List[AclEntryResponse])
def list_acl_entries(
    resource_type: Literal["vault", "folder", "item"] = Query(...),
    resource_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return AclService(db, principal).list_entries(resource_type, resource_id)


@router.post("", response_model=AclEntryResponse, status_code=201)
def create_acl_entry(
    data: AclEntryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Grant permissions to a user, group or role on a shared-vault resource."""
    return AclService(db, principal).create_entry(data)


@router.delete("/{acl_id}", status_code=204)
def delete_acl_entry(
    acl_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    AclService(db, principal).delete_entry(acl_id)
