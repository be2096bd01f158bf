"""Core primitives: resource models and Snapshot operations."""

from optisync.core.resources import Collection, Entity, Post, Snapshot, User
from optisync.core.snapshot import (
    append_entity,
    as_snapshot,
    entity_ids,
    find_index,
    merge_entity,
    remove_entity,
    substitute_entity,
)

__all__ = [
    # Resources
    "Collection",
    "Entity",
    "User",
    "Post",
    "Snapshot",
    # Snapshot operations
    "as_snapshot",
    "entity_ids",
    "find_index",
    "append_entity",
    "merge_entity",
    "remove_entity",
    "substitute_entity",
]
