"""Mutation models and policy.

Types describing one in-flight optimistic operation and the knobs that
govern what happens after it settles.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from optisync.core.resources import Collection, Snapshot


class MutationKind(Enum):
    """Kind of optimistic operation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def past_tense(self) -> str:
        return f"{self.value}d"


@dataclass(slots=True)
class MutationRecord:
    """One in-flight optimistic operation.

    Lives only for the duration of a single mutation and is never persisted.
    """

    kind: MutationKind
    collection: Collection
    rollback: Snapshot
    """Snapshot captured in Phase 1; restored by reference on failure."""

    payload: Mapping[str, Any] = field(default_factory=dict)
    """Caller-supplied fields (create/update)."""

    target_id: int | None = None
    """Entity being updated or deleted."""

    provisional_id: int | None = None
    """Placeholder id assigned to a created entity in Phase 2."""

    resolved_id: int | None = None
    """Id the entity ends up with after reconciliation."""

    @property
    def entity_id(self) -> int | None:
        """Id the mutation currently refers to."""
        if self.resolved_id is not None:
            return self.resolved_id
        if self.provisional_id is not None:
            return self.provisional_id
        return self.target_id


@dataclass(frozen=True, slots=True)
class MutationPolicy:
    """What the pipeline does after a successful mutation."""

    refetch_after_write: bool = False
    """Invalidate and refetch the Collection after success.

    Leave off for backends that do not persist writes: a refetch would
    resurrect deleted rows and drop created ones.
    """
