"""Folder tree traversal: downward subtree expansion and upward root lookup.

Both walks keep a seen set, so corrupted data containing a parent cycle
terminates instead of looping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from ..models.vault import Folder
    from ..repositories.resource_store import ResourceStore


def expand_descendants(store: ResourceStore, roots: Iterable[str]) -> set[str]:
    """Return *roots* plus every folder id reachable below them.

    Breadth-first with one ``get_folders_by_parent`` query per depth level.
    Stops as soon as a level contributes no unseen id.
    """
    seen: set[str] = {r for r in roots if r}
    frontier = list(seen)

    while frontier:
        children = store.get_folders_by_parent(frontier)
        fresh = [c.id for c in children if c.id not in seen]
        if not fresh:
            break
        seen.update(fresh)
        frontier = fresh

    return seen


def find_root_folder(store: ResourceStore, folder: Folder) -> Optional[Folder]:
    """Walk parent links up to the root ancestor of *folder*.

    Returns None when a parent is missing, a parent lives in another vault,
    or the chain loops back on itself.
    """
    current = folder
    seen = {folder.id}
    while current.parent_id is not None:
        if current.parent_id in seen:
            return None
        parent = store.get_folder(current.parent_id)
        if parent is None or parent.vault_id != folder.vault_id:
            return None
        seen.add(parent.id)
        current = parent
    return current


def is_descendant_or_self(store: ResourceStore, folder_id: str, candidate_id: str) -> bool:
    """True when *candidate_id* is *folder_id* or lies inside its subtree."""
    return candidate_id in expand_descendants(store, [folder_id])
