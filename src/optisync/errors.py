"""Error taxonomy.

Every failure is scoped to one fetch or one mutation attempt; nothing here
is fatal to the process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from optisync.mutation.models import MutationRecord


class SyncError(Exception):
    """Base class for all optisync errors."""


class TransportError(SyncError):
    """Network, status or timeout failure reported by a Transport.

    Network errors, non-2xx statuses and timeouts are not distinguished;
    each one is terminal for the current attempt.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class EntityNotCachedError(SyncError):
    """Update/delete target is not present in the current Snapshot."""

    def __init__(self, entity_id: int) -> None:
        super().__init__(f"entity {entity_id} not in snapshot")
        self.entity_id = entity_id


class ProvisionalIdExhaustedError(SyncError):
    """Provisional id counter ran past its configured ceiling."""


class MutationError(SyncError):
    """Raised to the caller after a failed mutation has been rolled back.

    The exception raised by the Transport is chained as ``__cause__``.
    """

    def __init__(self, record: MutationRecord, message: str) -> None:
        super().__init__(message)
        self.record = record
        self.message = message
