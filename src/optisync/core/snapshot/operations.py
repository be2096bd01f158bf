"""Pure Snapshot patch functions.

Every function returns a new tuple and leaves its input untouched, so a
Snapshot captured earlier stays valid as a rollback point.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from optisync.core.resources import Entity, Snapshot
from optisync.errors import EntityNotCachedError


def as_snapshot(entities: Iterable[Entity]) -> Snapshot:
    """Coerce a sequence to a Snapshot, keeping an existing tuple's identity."""
    if isinstance(entities, tuple):
        return entities
    return tuple(entities)


def entity_ids(snapshot: Snapshot) -> set[int]:
    return {entity.id for entity in snapshot}


def find_index(snapshot: Snapshot, entity_id: int) -> int | None:
    """Position of the entity with ``entity_id``, or None if absent."""
    for index, entity in enumerate(snapshot):
        if entity.id == entity_id:
            return index
    return None


def _require_index(snapshot: Snapshot, entity_id: int) -> int:
    index = find_index(snapshot, entity_id)
    if index is None:
        raise EntityNotCachedError(entity_id)
    return index


def append_entity(snapshot: Snapshot, entity: Entity) -> Snapshot:
    """Append ``entity`` at the end.

    Raises:
        ValueError: If an entity with the same id is already present.
    """
    if find_index(snapshot, entity.id) is not None:
        raise ValueError(f"entity {entity.id} already in snapshot")
    return (*snapshot, entity)


def merge_entity(snapshot: Snapshot, entity_id: int, changes: Mapping[str, Any]) -> Snapshot:
    """Shallow-merge ``changes`` into the entity with ``entity_id``.

    Raises:
        EntityNotCachedError: If no entity has ``entity_id``.
    """
    index = _require_index(snapshot, entity_id)
    merged = snapshot[index].merged(changes)
    return (*snapshot[:index], merged, *snapshot[index + 1 :])


def remove_entity(snapshot: Snapshot, entity_id: int) -> Snapshot:
    """Drop the entity with ``entity_id``.

    Raises:
        EntityNotCachedError: If no entity has ``entity_id``.
    """
    index = _require_index(snapshot, entity_id)
    return (*snapshot[:index], *snapshot[index + 1 :])


def substitute_entity(snapshot: Snapshot, entity_id: int, replacement: Entity) -> Snapshot:
    """Replace the entity with ``entity_id`` by ``replacement`` at the same position.

    The replacement may carry a different id (Provisional -> Server).

    Raises:
        EntityNotCachedError: If no entity has ``entity_id``.
    """
    index = _require_index(snapshot, entity_id)
    return (*snapshot[:index], replacement, *snapshot[index + 1 :])
