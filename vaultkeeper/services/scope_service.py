"""Scope modes: which subset of vault data a collection operation may touch.

A scope mode is resolved per (entity, verb) from action grants, most
restrictive first:

    <entity>.<verb>.scope.{none,own,ldd,any}   entity override
    <verb>.scope.{none,own,ldd,any}            resource-wide default
    own                                        fallback

``ldd`` (location/division/department) has no organisational data behind it
in this service and is treated as ``own``.

The mode is then turned into an ``AccessScope`` (concrete vault, folder and
item ids) for list queries, or enforced against a single target vault for
create/update/delete.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Optional, Protocol, Sequence

from ..core.config import settings
from ..exceptions import ForbiddenError
from .folder_tree_service import expand_descendants

if TYPE_CHECKING:
    from ..models.vault import Vault
    from ..repositories.resource_store import ResourceStore
    from .principal_service import Principal

logger = logging.getLogger(__name__)

WILDCARD_ROLE = "*"


class ScopeMode(str, Enum):
    NONE = "none"
    OWN = "own"
    LDD = "ldd"
    ANY = "any"


# Probe order: most restrictive first.
_MODE_ORDER: tuple[ScopeMode, ...] = (ScopeMode.NONE, ScopeMode.OWN, ScopeMode.LDD, ScopeMode.ANY)



class ActionChecker(Protocol):
    """Action-permission predicate consulted by the scope resolver."""

    def granted(self, principal: Principal, action_key: str) -> bool:
        ...


class SettingsActionChecker:
    """Grants action keys per role from a role -> keys mapping.

    Keys listed under ``"*"`` apply to every caller.
    """

    def __init__(self, grants: Mapping[str, Sequence[str]]):
        self._grants = {role: frozenset(keys) for role, keys in grants.items()}

    def granted(self, principal: Principal, action_key: str) -> bool:
        if action_key in self._grants.get(WILDCARD_ROLE, ()):
            return True
        return any(action_key in self._grants.get(role, ()) for role in principal.roles)


def resolve_scope_mode(
    checker: ActionChecker, principal: Principal, entity: str, verb: str
) -> ScopeMode:
    """First granted mode wins, entity keys before resource-wide keys."""
    for prefix in (f"{entity}.{verb}.scope", f"{verb}.scope"):
        for mode in _MODE_ORDER:
            if checker.granted(principal, f"{prefix}.{mode.value}"):
                return mode
    return ScopeMode.OWN


@dataclass(frozen=True)
class AccessScope:
    """Concrete visible set for collection queries.

    A folder is visible when its vault is in ``vault_ids`` or it is in
    ``folder_ids``. An item is visible when its vault is in
    ``open_vault_ids``, when it sits in a folder of a vault in ``vault_ids``,
    when its folder is in ``folder_ids``, or when it is in ``item_ids``.
    Vaults seen only through a vault ACL are not open: their folderless
    items need an item grant.
    """

    vault_ids: frozenset[str] = field(default_factory=frozenset)
    open_vault_ids: frozenset[str] = field(default_factory=frozenset)
    folder_ids: frozenset[str] = field(default_factory=frozenset)
    item_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.vault_ids or self.folder_ids or self.item_ids)


EMPTY_SCOPE = AccessScope()


def resolve_visible_scope(
    store: ResourceStore,
    principal: Principal,
    mode: ScopeMode,
    admin_role: str = "admin",
) -> AccessScope:
    """Translate a scope mode into the ids the caller may list.

    ``none`` never touches the store. ``own`` and ``ldd`` cover the caller's
    personal vaults. ``any`` adds shared vaults reachable through vault ACLs,
    the subtrees of root folders granted by folder ACLs, and items granted
    directly. Admins see every shared vault as open. Grants that land in a
    personal vault are discarded.
    """
    if mode == ScopeMode.NONE:
        return EMPTY_SCOPE

    own = store.get_personal_vault_ids(principal.user_id)
    if mode in (ScopeMode.OWN, ScopeMode.LDD):
        return AccessScope(vault_ids=frozenset(own), open_vault_ids=frozenset(own))

    pids = principal.principal_ids
    open_ids = set(own)
    if principal.has_role(admin_role):
        open_ids |= store.get_shared_vault_ids()

    vault_rows = store.get_acl_rows_for_principals("vault", pids)
    vault_ids = open_ids | store.get_shared_vault_ids({r.resource_id for r in vault_rows})

    folder_ids = _folders_from_root_grants(store, pids)
    item_ids = _items_from_item_grants(store, pids)

    return AccessScope(
        vault_ids=frozenset(vault_ids),
        open_vault_ids=frozenset(open_ids),
        folder_ids=frozenset(folder_ids),
        item_ids=frozenset(item_ids),
    )


def _folders_from_root_grants(store: ResourceStore, pids: list[str]) -> set[str]:
    rows = store.get_acl_rows_for_principals("folder", pids)
    if not rows:
        return set()

    granted = store.get_folders_by_ids({r.resource_id for r in rows})
    roots = [f for f in granted if f.parent_id is None]
    if len(roots) != len(granted):
        logger.debug(
            "Ignoring folder ACLs on non-root folders",
            extra={"folder_ids": sorted(f.id for f in granted if f.parent_id is not None)},
        )

    shared = store.get_shared_vault_ids({f.vault_id for f in roots})
    granting_roots = [f for f in roots if f.vault_id in shared]
    if not granting_roots:
        return set()

    granting_vaults = {f.vault_id for f in granting_roots}
    expanded = expand_descendants(store, [f.id for f in granting_roots])
    return {f.id for f in store.get_folders_by_ids(expanded) if f.vault_id in granting_vaults}


def _items_from_item_grants(store: ResourceStore, pids: list[str]) -> set[str]:
    rows = store.get_acl_rows_for_principals("item", pids)
    if not rows:
        return set()
    items = store.get_items_by_ids({r.resource_id for r in rows})
    shared = store.get_shared_vault_ids({i.vault_id for i in items})
    return {i.id for i in items if i.vault_id in shared}


def enforce_mutation_scope(
    mode: ScopeMode, vault: Vault, principal: Principal, action: str = "modify"
) -> None:
    """Reject a create/update/delete the scope mode does not allow.

    ``any`` returns without deciding; the ACL check decides afterwards.

    Raises:
        ForbiddenError: For ``none``, or for ``own``/``ldd`` outside the
            caller's personal vaults.
    """
    if mode == ScopeMode.NONE:
        raise ForbiddenError(f"Not permitted to {action} vault data", reason="ScopeNone")
    if mode in (ScopeMode.OWN, ScopeMode.LDD):
        if not (vault.is_personal and vault.owner_user_id == principal.user_id):
            raise ForbiddenError(
                f"Scope '{mode.value}' only allows you to {action} your own vaults",
                reason="ScopeOwn",
            )


def build_action_checker(grants: Optional[Mapping[str, Sequence[str]]] = None) -> ActionChecker:
    """Default checker built from ``settings.action_grants``."""
    return SettingsActionChecker(settings.action_grants if grants is None else grants)
