"""ACL entry schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List, Literal

ResourceType = Literal["vault", "folder", "item"]
PrincipalType = Literal["user", "group", "role"]


class AclEntryCreate(BaseModel):
    """Grant ``permissions`` on one resource to one principal.

    ``permissions`` accepts canonical tokens and legacy aliases; the service
    rejects anything else.
    """
    resource_type: ResourceType
    resource_id: str
    principal_type: PrincipalType
    principal_id: str
    permissions: List[str]

    @field_validator('principal_id', 'resource_id')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be empty")
        return v


class AclEntryResponse(BaseModel):
    id: str
    resource_type: ResourceType
    resource_id: str
    principal_type: PrincipalType
    principal_id: str
    permissions: List[str]
    inherit: bool = False
    created_by: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
