"""Snapshot functionality: pure copy-on-write patches over entity tuples."""

from optisync.core.snapshot.operations import (
    append_entity,
    as_snapshot,
    entity_ids,
    find_index,
    merge_entity,
    remove_entity,
    substitute_entity,
)

__all__ = [
    "as_snapshot",
    "entity_ids",
    "find_index",
    "append_entity",
    "merge_entity",
    "remove_entity",
    "substitute_entity",
]
