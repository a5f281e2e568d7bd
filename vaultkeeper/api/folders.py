"""Folder API: list, create, read with capability flags, rename, move, delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import get_principal
from ..database import get_db
from ..schemas.folder import (
    FolderCreate,
    FolderDetailResponse,
    FolderMoveRequest,
    FolderResponse,
    FolderUpdate,
)
from ..services.folder_service import FolderService
from ..services.principal_service import Principal

router = APIRouter(prefix="/api/vault/folders", tags=["folders"])


@router.get("", response_model=List[FolderResponse])
def list_folders(
    vault_id: Optional[str] = Query(None),
    parent_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Folders in the caller's read scope, optionally filtered."""
    return FolderService(db, principal).list_folders(
        vault_id=vault_id, parent_id=parent_id, search=search
    )


@router.post("", response_model=FolderResponse, status_code=201)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Create a folder. Requires READ_WRITE on the parent folder, or on the vault for roots."""
    return FolderService(db, principal).create_folder(data)


@router.get("/{folder_id}", response_model=FolderDetailResponse)
def get_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return FolderService(db, principal).get_folder(folder_id)


@router.put("/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: str,
    data: FolderUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return FolderService(db, principal).update_folder(folder_id, data)


@router.post("/{folder_id}/move", response_model=FolderResponse)
def move_folder(
    folder_id: str,
    request: FolderMoveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Move within the same vault. Requires READ_WRITE on the folder and the target."""
    return FolderService(db, principal).move_folder(folder_id, request.parent_id)


@router.delete("/{folder_id}", status_code=204)
def delete_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Delete the folder subtree and its items. Requires DELETE."""
    FolderService(db, principal).delete_folder(folder_id)
