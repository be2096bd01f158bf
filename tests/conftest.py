"""Shared test fixtures."""

import asyncio
import sys
from collections import defaultdict, deque
from collections.abc import Mapping
from typing import Any

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from optisync import (
    Collection,
    Entity,
    LocalCollectionCache,
    MutationKind,
    MutationPipeline,
    MutationPolicy,
    ProvisionalIdAllocator,
    QueryCoordinator,
    TransportError,
    User,
)


class FakeTransport:
    """In-memory backend that, like the public mock API, never persists writes.

    Calls can be held open with ``hold(op)`` and failed with ``fail(op)``.
    """

    def __init__(self) -> None:
        self.data: dict[Collection, list[Entity]] = {
            Collection.USERS: [],
            Collection.POSTS: [],
        }
        self.next_ids: dict[Collection, int] = {
            Collection.USERS: 11,
            Collection.POSTS: 101,
        }
        self.update_returns_none = False
        self.calls: list[tuple[str, Collection, Any]] = []
        self._gates: dict[str, asyncio.Event] = {}
        self._errors: dict[str, deque[Exception]] = defaultdict(deque)

    def hold(self, op: str) -> asyncio.Event:
        """Block calls to ``op`` until the returned event is set."""
        gate = asyncio.Event()
        self._gates[op] = gate
        return gate

    def fail(
        self, op: str, times: int = 1, message: str = "boom", error: Exception | None = None
    ) -> None:
        """Make the next ``times`` calls to ``op`` raise ``error`` (a 500 by default)."""
        for _ in range(times):
            self._errors[op].append(error or TransportError(message, status=500))

    def count(self, op: str) -> int:
        return sum(1 for name, _, _ in self.calls if name == op)

    async def _pass(self, op: str) -> None:
        gate = self._gates.get(op)
        if gate is not None:
            await gate.wait()
        if self._errors[op]:
            raise self._errors[op].popleft()

    async def list(self, collection: Collection) -> list[Entity]:
        self.calls.append(("list", collection, None))
        rows = list(self.data[collection])
        await self._pass("list")
        return rows

    async def create(self, collection: Collection, payload: Mapping[str, Any]) -> Entity:
        self.calls.append(("create", collection, dict(payload)))
        await self._pass("create")
        entity_id = self.next_ids[collection]
        self.next_ids[collection] += 1
        return collection.entity_type.from_payload(entity_id, payload)

    async def update(
        self, collection: Collection, entity_id: int, payload: Mapping[str, Any]
    ) -> Entity | None:
        self.calls.append(("update", collection, (entity_id, dict(payload))))
        await self._pass("update")
        if self.update_returns_none:
            return None
        return collection.entity_type.from_payload(entity_id, payload)

    async def delete(self, collection: Collection, entity_id: int) -> None:
        self.calls.append(("delete", collection, entity_id))
        await self._pass("delete")


class RecordingSink:
    """NotificationSink and HighlightSink that keeps every event."""

    def __init__(self) -> None:
        self.succeeded: list[tuple[Collection, MutationKind, int | None]] = []
        self.failed: list[tuple[Collection, MutationKind, str]] = []
        self.highlighted: list[tuple[Collection, int]] = []

    def on_mutation_succeeded(
        self, collection: Collection, kind: MutationKind, resolved_id: int | None
    ) -> None:
        self.succeeded.append((collection, kind, resolved_id))

    def on_mutation_failed(self, collection: Collection, kind: MutationKind, message: str) -> None:
        self.failed.append((collection, kind, message))

    def highlight(self, collection: Collection, resolved_id: int) -> None:
        self.highlighted.append((collection, resolved_id))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache() -> LocalCollectionCache:
    """Fresh cache instance."""
    return LocalCollectionCache()


@pytest.fixture
def allocator() -> ProvisionalIdAllocator:
    return ProvisionalIdAllocator()


@pytest.fixture
def queries(cache, transport, clock) -> QueryCoordinator:
    return QueryCoordinator(cache, transport, stale_after=120.0, clock=clock)


@pytest.fixture
def pipeline(cache, queries, transport, allocator, sink) -> MutationPipeline:
    return MutationPipeline(
        cache,
        queries,
        transport,
        allocator,
        notifier=sink,
        highlighter=sink,
        policy=MutationPolicy(),
    )


@pytest.fixture
def user_a() -> User:
    return User(id=1, name="A")
