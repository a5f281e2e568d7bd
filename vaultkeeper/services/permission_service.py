"""Permission tokens: normalization, merging and satisfaction.

This is the ONE place where permission rules are defined. The access engine,
the ACL writer and the response flags all go through these functions.

Design:
    - Canonical tokens: READ_ONLY, READ_WRITE, DELETE, MANAGE_ACL
    - Legacy aliases fold onto a canonical token before anything else
    - Ladder: DELETE implies READ_WRITE, READ_WRITE implies READ_ONLY
    - MANAGE_ACL is orthogonal: it neither implies nor is implied
    - Unknown tokens grant nothing and can never be satisfied
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional


class PermissionToken(str, Enum):
    READ_ONLY = "READ_ONLY"
    READ_WRITE = "READ_WRITE"
    DELETE = "DELETE"
    MANAGE_ACL = "MANAGE_ACL"


ALL_PERMISSIONS: frozenset[PermissionToken] = frozenset(PermissionToken)

# Legacy alias → canonical token.
_ALIASES: dict[str, PermissionToken] = {
    "EDIT": PermissionToken.READ_WRITE,
    "SHARE": PermissionToken.READ_WRITE,
    "VIEW_METADATA": PermissionToken.READ_ONLY,
    "REVEAL_PASSWORD": PermissionToken.READ_ONLY,
    "COPY_PASSWORD": PermissionToken.READ_ONLY,
    "GENERATE_TOTP": PermissionToken.READ_WRITE,
    "REVEAL_TOTP_SECRET": PermissionToken.READ_ONLY,
    "READ_SMS": PermissionToken.READ_ONLY,
    "MANAGE_SMS": PermissionToken.READ_WRITE,
    "IMPORT": PermissionToken.READ_WRITE,
}

# Each token → tokens it implies (excluding itself).
_IMPLIES: dict[PermissionToken, tuple[PermissionToken, ...]] = {
    PermissionToken.DELETE: (PermissionToken.READ_WRITE, PermissionToken.READ_ONLY),
    PermissionToken.READ_WRITE: (PermissionToken.READ_ONLY,),
    PermissionToken.READ_ONLY: (),
    PermissionToken.MANAGE_ACL: (),
}


def canonical(token: str) -> Optional[PermissionToken]:
    """Map a canonical token or legacy alias to its canonical form, else None."""
    if isinstance(token, PermissionToken):
        return token
    if not isinstance(token, str):
        return None
    try:
        return PermissionToken(token)
    except ValueError:
        return _ALIASES.get(token)


def normalize(tokens: Optional[Iterable[str]]) -> frozenset[PermissionToken]:
    """Fold aliases onto canonical tokens, dropping anything unrecognised."""
    result = set()
    for token in tokens or ():
        mapped = canonical(token)
        if mapped is not None:
            result.add(mapped)
    return frozenset(result)


def merge(permission_sets: Iterable[Optional[Iterable[str]]]) -> frozenset[PermissionToken]:
    """Union of every normalized set, closed under the implication ladder."""
    union: set[PermissionToken] = set()
    for tokens in permission_sets:
        union |= normalize(tokens)
    expanded = set(union)
    for token in union:
        expanded.update(_IMPLIES[token])
    return frozenset(expanded)


def satisfies(effective: Iterable[str], required: Optional[Iterable[str]]) -> bool:
    """True when every required token (after alias mapping) is in *effective*.

    *effective* is expected to be the output of :func:`merge`. A required
    token that is neither canonical nor an alias makes the result False.
    """
    have = normalize(effective)
    for token in required or ():
        mapped = canonical(token)
        if mapped is None or mapped not in have:
            return False
    return True


def parse_permissions(tokens: Iterable[str]) -> list[PermissionToken]:
    """Strict boundary parser for ACL writes.

    Accepts canonical tokens and aliases, returns canonical tokens in a
    stable order with duplicates removed.

    Raises:
        ValueError: On an empty list or any unrecognised token.
    """
    parsed: list[PermissionToken] = []
    unknown: list[str] = []
    for token in tokens:
        mapped = canonical(token)
        if mapped is None:
            unknown.append(str(token))
        elif mapped not in parsed:
            parsed.append(mapped)
    if unknown:
        raise ValueError(f"Unknown permission tokens: {', '.join(unknown)}")
    if not parsed:
        raise ValueError("At least one permission is required")
    order = list(PermissionToken)
    return sorted(parsed, key=order.index)


def permission_level(effective: Iterable[str]) -> str:
    """Summarize an effective set as ``full``, ``read_write``, ``read_only`` or ``none``."""
    have = merge([effective])
    if PermissionToken.DELETE in have:
        return "full"
    if PermissionToken.READ_WRITE in have:
        return "read_write"
    if PermissionToken.READ_ONLY in have:
        return "read_only"
    return "none"
