"""API routes."""

from .vaults import router as vaults_router
from .folders import router as folders_router
from .items import router as items_router
from .acl import router as acl_router
from .groups import router as groups_router

__all__ = [
    "vaults_router",
    "folders_router",
    "items_router",
    "acl_router",
    "groups_router",
]
