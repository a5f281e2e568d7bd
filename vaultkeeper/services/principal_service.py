"""Principal resolution: who is the caller, for ACL matching purposes.

A Principal is computed once per request from the authenticated identity and
discarded afterwards. Group ids come from two independent sources:

    - dynamic groups asserted by the identity collaborator (token claim)
    - static memberships stored in ``vault_group_members``

Either source may fail. A failure is logged and that source contributes no
groups; resolution itself never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

if TYPE_CHECKING:
    from ..core.auth import CallerIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Identifiers an ACL row's ``principal_id`` is matched against."""

    user_id: str
    user_email: Optional[str] = None
    roles: frozenset[str] = field(default_factory=frozenset)
    group_ids: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def principal_ids(self) -> list[str]:
        """user id, email, group ids, roles; empty values dropped, order stable."""
        ids: list[str] = []
        for value in (self.user_id, self.user_email, *sorted(self.group_ids), *sorted(self.roles)):
            if value and value not in ids:
                ids.append(value)
        return ids


class DynamicGroupResolver(Protocol):
    """External identity collaborator that knows the caller's dynamic groups.

    Called for every caller, including those whose ``identity.email`` is
    None. Implementations keyed on email must return no groups in that case
    rather than raise.
    """

    def resolve_dynamic_group_ids(self, identity: CallerIdentity) -> Iterable[str]:
        ...


class ClaimGroupResolver:
    """Reads dynamic groups from the ``groups`` claim of the caller's token."""

    def resolve_dynamic_group_ids(self, identity: CallerIdentity) -> Iterable[str]:
        return identity.groups


class MembershipSource(Protocol):
    def get_group_ids_for_member(self, user_id: Optional[str], email: Optional[str]) -> list[str]:
        ...


def resolve_principal(
    identity: CallerIdentity,
    memberships: Optional[MembershipSource] = None,
    group_resolver: Optional[DynamicGroupResolver] = None,
) -> Principal:
    """Build the caller's Principal.

    Args:
        identity: Authenticated caller (user id, email, roles, token groups).
        memberships: Static membership lookup, usually a ``ResourceStore``.
            ``None`` skips static groups.
        group_resolver: Dynamic group source. Defaults to the token claim.
            It is asked for every caller, so it must handle ``email=None``.

    Returns:
        A Principal. Never raises: a failing group source yields no groups.
    """
    resolver = group_resolver if group_resolver is not None else ClaimGroupResolver()
    groups: set[str] = set()

    try:
        groups.update(g for g in resolver.resolve_dynamic_group_ids(identity) if g)
    except Exception as e:
        logger.warning(
            "Dynamic group resolution failed; continuing without dynamic groups: %s", e,
            extra={"user_id": identity.user_id},
        )

    if memberships is not None:
        try:
            groups.update(
                g for g in memberships.get_group_ids_for_member(identity.user_id, identity.email) if g
            )
        except Exception as e:
            logger.warning(
                "Static group membership lookup failed; continuing without static groups: %s", e,
                extra={"user_id": identity.user_id},
            )

    return Principal(
        user_id=identity.user_id,
        user_email=identity.email or None,
        roles=frozenset(r for r in identity.roles if r),
        group_ids=frozenset(groups),
    )
