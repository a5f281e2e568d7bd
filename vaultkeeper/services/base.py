"""Shared wiring for services that act on behalf of one caller.

Every domain service needs the same per-request collaborators: the resource
store, the access engine and the scope resolver. They are built here once per
service instance and never cached across requests.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..exceptions import ForbiddenError, ResourceNotFoundError
from ..repositories.resource_store import ResourceStore
from .access_service import AccessService
from .principal_service import Principal
from .scope_service import (
    AccessScope,
    ActionChecker,
    ScopeMode,
    build_action_checker,
    resolve_scope_mode,
    resolve_visible_scope,
)


class AuthorizedService:
    """Base class: holds the caller's Principal and the engine collaborators."""

    scope_entity: str

    def __init__(
        self,
        db: Session,
        principal: Principal,
        checker: Optional[ActionChecker] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.principal = principal
        self.settings = settings or default_settings
        self.store = ResourceStore(db)
        self.access = AccessService(self.store, self.settings)
        self.checker = checker or build_action_checker(self.settings.action_grants)

    @property
    def is_admin(self) -> bool:
        return self.principal.has_role(self.settings.admin_role)

    def scope_mode(self, verb: str) -> ScopeMode:
        return resolve_scope_mode(self.checker, self.principal, self.scope_entity, verb)

    def visible_scope(self) -> AccessScope:
        return resolve_visible_scope(
            self.store, self.principal, self.scope_mode("read"), self.settings.admin_role
        )

    def require_read_scope(self) -> ScopeMode:
        """Read scope for single-resource reads; ``none`` forbids outright."""
        mode = self.scope_mode("read")
        if mode == ScopeMode.NONE:
            raise ForbiddenError(f"Not permitted to read {self.scope_entity}", reason="ScopeNone")
        return mode

    def ensure_read_scope(self, vault, resource_type: str, resource_id: str) -> None:
        """Hide resources outside the caller's read scope as not found."""
        mode = self.require_read_scope()
        if mode in (ScopeMode.OWN, ScopeMode.LDD) and not self.owns_personal(vault):
            raise ResourceNotFoundError(resource_type, resource_id)

    def owns_personal(self, vault) -> bool:
        return vault.is_personal and vault.owner_user_id == self.principal.user_id
