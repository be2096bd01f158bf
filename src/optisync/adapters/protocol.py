"""Protocols for the collaborators at the engine's boundary.

Transport performs the network calls. NotificationSink and HighlightSink
receive outcomes; the engine never renders anything itself.

Usage:
    class MyTransport:
        async def list(self, collection: Collection) -> list[Entity]: ...
        ...

    client = SyncClient(transport=MyTransport())
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from optisync.core.resources import Collection, Entity

if TYPE_CHECKING:
    from optisync.mutation.models import MutationKind


@runtime_checkable
class Transport(Protocol):
    """Asynchronous CRUD calls per Collection.

    Every method may fail with ``TransportError``; implementations should
    convert their library's exceptions so callers see one error type.
    """

    async def list(self, collection: Collection) -> Sequence[Entity]:
        """Fetch the full ordered collection."""
        ...

    async def create(self, collection: Collection, payload: Mapping[str, Any]) -> Entity:
        """Create an entity. Returns the server-confirmed entity with its ServerId."""
        ...

    async def update(
        self, collection: Collection, entity_id: int, payload: Mapping[str, Any]
    ) -> Entity | None:
        """Update an entity. May return None when the server confirms nothing."""
        ...

    async def delete(self, collection: Collection, entity_id: int) -> None:
        """Delete an entity."""
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Receives the outcome of every mutation (toast-style feedback)."""

    def on_mutation_succeeded(
        self, collection: Collection, kind: MutationKind, resolved_id: int | None
    ) -> None:
        """Called once a mutation has been reconciled."""
        ...

    def on_mutation_failed(self, collection: Collection, kind: MutationKind, message: str) -> None:
        """Called once a failed mutation has been rolled back."""
        ...


@runtime_checkable
class HighlightSink(Protocol):
    """Scrolls to and flashes a newly created row. Fire-and-forget."""

    def highlight(self, collection: Collection, resolved_id: int) -> None:
        """Locate the row for ``resolved_id``; a missing row is ignored."""
        ...
