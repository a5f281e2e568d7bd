"""Static group API. Every endpoint is admin-only."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import get_principal
from ..database import get_db
from ..schemas.group import (
    GroupCreate,
    GroupMemberCreate,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdate,
)
from ..services.group_service import GroupService
from ..services.principal_service import Principal

router = APIRouter(prefix="/api/vault/groups", tags=["groups"])


@router.get("", response_model=List[GroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return GroupService(db, principal).list_groups()


@router.post("", response_model=GroupResponse, status_code=201)
def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return GroupService(db, principal).create_group(data)


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return GroupService(db, principal).get_group(group_id)


@router.put("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: str,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return GroupService(db, principal).update_group(group_id, data)


@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Delete a group with its memberships and the ACL entries granted to it."""
    GroupService(db, principal).delete_group(group_id)


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
def list_group_members(
    group_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    return GroupService(db, principal).list_members(group_id)


@router.post("/{group_id}/members", response_model=GroupMemberResponse, status_code=201)
def add_group_member(
    group_id: str,
    data: GroupMemberCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    """Add a user id or email to the group. Takes effect on the member's next request."""
    return GroupService(db, principal).add_member(group_id, data.user_id)


@router.delete("/{group_id}/members/{user_id}", status_code=204)
def remove_group_member(
    group_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    GroupService(db, principal).remove_member(group_id, user_id)
