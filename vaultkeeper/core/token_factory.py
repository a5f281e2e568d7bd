"""Pure functions for creating and decoding caller JWTs.

Encode/decode only. The auth dependency decodes; tests and operator scripts
mint tokens with ``create_token``.
"""

import hashlib
import hmac
import base64
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

_ISSUER = "vaultkeeper"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded JWT claims. Immutable."""
    sub: str
    exp: datetime
    email: Optional[str] = None
    roles: Tuple[str, ...] = field(default_factory=tuple)
    groups: Tuple[str, ...] = field(default_factory=tuple)


def create_token(
    subject: str,
    secret: str,
    email: Optional[str] = None,
    roles: Sequence[str] = (),
    groups: Sequence[str] = (),
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed JWT.

    Args:
        subject: User id placed in ``sub``.
        secret: HMAC signing key.
        email: Optional email claim, matched against user ACL rows.
        roles: Role claims (``"admin"`` enables the shared-vault bypass).
        groups: Dynamic group ids asserted by the identity provider.
        algorithm: Only HS256 supported.
        expires_hours: Hours until expiry. Negative values mint expired tokens.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = time.time()
    payload = {
        "sub": subject,
        "roles": list(roles),
        "groups": list(groups),
        "iat": int(now),
        "exp": int(now + expires_hours * 3600),
        "iss": _ISSUER,
    }
    if email:
        payload["email"] = email

    header = {"alg": "HS256", "typ": "JWT"}
    segments = [
        _b64encode(json.dumps(header).encode()),
        _b64encode(json.dumps(payload).encode()),
    ]
    signing_input = b".".join(segments)
    signature = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    segments.append(_b64encode(signature))
    return b".".join(segments).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Decode and validate a JWT.

    Returns ``None`` on any failure (bad signature, expired, malformed,
    missing subject) instead of raising.
    """
    if algorithm != "HS256":
        return None
    try:
        parts = token.encode().split(b".")
        if len(parts) != 3:
            return None

        signing_input = parts[0] + b"." + parts[1]
        expected_sig = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
        actual_sig = _b64decode(parts[2])

        if not hmac.compare_digest(expected_sig, actual_sig):
            return None

        payload = json.loads(_b64decode(parts[1]))
        if not isinstance(payload, dict):
            return None

        exp = payload.get("exp", 0)
        if time.time() > exp:
            return None

        sub = payload.get("sub")
        if not sub:
            return None

        return TokenPayload(
            sub=str(sub),
            email=payload.get("email") or None,
            roles=_claim_list(payload.get("roles")),
            groups=_claim_list(payload.get("groups")),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, KeyError, ValueError, TypeError, IndexError):
        return None


def _claim_list(value) -> Tuple[str, ...]:
    # Identity providers send either a list or a comma-separated string.
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value if v)
    return ()


# --- base64url helpers (no padding, URL-safe) ---

def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    padding = 4 - len(data) % 4
    if padding != 4:
        data += b"=" * padding
    return base64.urlsafe_b64decode(data)
