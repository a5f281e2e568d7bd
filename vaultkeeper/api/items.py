"""Item API: list, create, read with capability flags, update, move, delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import get_principal
from ..database import get_db
from ..schemas.item import (
    ItemCreate,
    ItemDetailResponse,
    ItemMoveRequest,
    ItemResponse,
    ItemUpdate,
)
from ..services.item_service import ItemService
from ..services.principal_service import Principal

router = APIRouter(prefix="/api/vault/items", tags=["items"])


@router.get("", response_model=List[ItemResponse])
def list_items(
    vault_id: Optional[str] = Query(None),
    folder_id: Optional[str] = Query(None, description="Includes items in descendant folders"),
    search: Optional[str] = Query(None, max_length=255),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return ItemService(db, principal).list_items(
        vault_id=vault_id, folder_id=folder_id, search=search
    )


@router.post("", response_model=ItemResponse, status_code=201)
def create_item(
    data: ItemCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return ItemService(db, principal).create_item(data)


@router.get("/{item_id}", response_model=ItemDetailResponse)
def get_item(
    item_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return ItemService(db, principal).get_item(item_id)


@router.put("/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: str,
    data: ItemUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return ItemService(db, principal).update_item(item_id, data)


@router.post("/{item_id}/move", response_model=ItemResponse)
def move_item(
    item_id: str,
    request: ItemMoveRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Move into a folder (possibly in another vault) or to the vault root."""
    return ItemService(db, principal).move_item(item_id, request.folder_id)


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    ItemService(db, principal).delete_item(item_id)
