"""Authentication module exposing FastAPI dependencies.

Public interface:
    ``require_auth``  returns the caller's CallerIdentity or raises 401.
    ``get_principal`` resolves the caller's Principal (identity plus groups)
                      once per request for the authorization engine.

Identity sources, in order:
    1. ``Authorization: Bearer <jwt>`` signed with ``JWT_SECRET_KEY``
    2. ``x-user-id`` / ``x-user-email`` / ``x-user-roles`` headers, only when
       ``TRUST_PROXY_HEADERS=true`` (an upstream proxy has authenticated)

When ``settings.auth_enabled`` is False every dependency returns an anonymous
admin identity so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..repositories.resource_store import ResourceStore
from ..services.principal_service import Principal, resolve_principal

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as asserted by the token or the trusted proxy."""

    user_id: str
    email: Optional[str] = None
    roles: Tuple[str, ...] = field(default_factory=tuple)
    groups: Tuple[str, ...] = field(default_factory=tuple)


_ANONYMOUS = CallerIdentity(user_id="anonymous", roles=(settings.admin_role,))


def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> CallerIdentity:
    """Require an authenticated caller and return its identity.

    When ``AUTH_ENABLED=false`` returns the anonymous admin identity.
    """
    if not settings.auth_enabled:
        return _ANONYMOUS

    if credentials is not None:
        payload = decode_token(
            credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
        )
        if payload is None:
            raise AuthenticationError("Invalid or expired token")
        return _identity_from_token(payload)

    if settings.trust_proxy_headers:
        identity = _identity_from_headers(request)
        if identity is not None:
            return identity

    raise AuthenticationError("Missing authentication token")


def get_principal(
    identity: CallerIdentity = Depends(require_auth),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the request's Principal. Group lookups degrade, never fail."""
    return resolve_principal(identity, memberships=ResourceStore(db))


def _identity_from_token(payload: TokenPayload) -> CallerIdentity:
    return CallerIdentity(
        user_id=payload.sub,
        email=payload.email,
        roles=payload.roles,
        groups=payload.groups,
    )


def _identity_from_headers(request: Request) -> Optional[CallerIdentity]:
    user_id = (request.headers.get("x-user-id") or "").strip()
    if not user_id:
        return None
    roles_header = request.headers.get("x-user-roles") or ""
    logger.debug("Using proxy-asserted identity", extra={"user_id": user_id})
    return CallerIdentity(
        user_id=user_id,
        email=(request.headers.get("x-user-email") or "").strip() or None,
        roles=tuple(r.strip() for r in roles_header.split(",") if r.strip()),
    )
