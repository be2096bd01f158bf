"""Sync client: one cache instance with its read and write sides.

Usage:
    async with SyncClient.from_settings(ClientSettings()) as client:
        users = await client.fetch(Collection.USERS)
        user = await client.create(Collection.USERS, {"name": "B", "email": "b@example.com"})
        await client.delete(Collection.USERS, user.id)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Self

from optisync.adapters.protocol import HighlightSink, NotificationSink, Transport
from optisync.config import ClientSettings
from optisync.core.resources import Collection, Entity, Snapshot
from optisync.mutation import MutationPipeline
from optisync.query import QueryCoordinator, QueryState
from optisync.storage import LocalCollectionCache, ProvisionalIdAllocator


class SyncClient:
    """Composition root for one client session.

    Owns exactly one cache, one provisional id allocator, one query
    coordinator and one mutation pipeline. Nothing else writes to the cache.

    Args:
        transport: Backend calls.
        settings: Client configuration. Defaults are loaded from the environment.
        notifier: Receives mutation outcomes.
        highlighter: Receives the resolved id of each created entity.
        clock: Monotonic time source for staleness, injectable for tests.
    """

    def __init__(
        self,
        transport: Transport,
        settings: ClientSettings | None = None,
        notifier: NotificationSink | None = None,
        highlighter: HighlightSink | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.transport = transport
        self.cache = LocalCollectionCache()
        self.allocator = ProvisionalIdAllocator(seeds=self.settings.id_seeds())

        coordinator_kwargs: dict[str, Any] = {}
        if clock is not None:
            coordinator_kwargs["clock"] = clock
        self.queries = QueryCoordinator(
            self.cache,
            transport,
            stale_after=self.settings.stale_after,
            retry_policy=self.settings.retry_policy(),
            **coordinator_kwargs,
        )
        self.mutations = MutationPipeline(
            self.cache,
            self.queries,
            transport,
            self.allocator,
            notifier=notifier,
            highlighter=highlighter,
            policy=self.settings.mutation_policy(),
        )

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        notifier: NotificationSink | None = None,
        highlighter: HighlightSink | None = None,
    ) -> SyncClient:
        """Create a client talking HTTP to ``settings.base_url``."""
        from optisync.adapters.http import HttpTransport

        return cls(
            HttpTransport.from_settings(settings),
            settings=settings,
            notifier=notifier,
            highlighter=highlighter,
        )

    # Reads

    async def fetch(self, collection: Collection, *, force: bool = False) -> Snapshot:
        return await self.queries.fetch(collection, force=force)

    def state(self, collection: Collection) -> QueryState:
        return self.queries.state(collection)

    def snapshot(self, collection: Collection) -> Snapshot | None:
        """Current cached Snapshot without touching the Transport."""
        return self.cache.read(collection)

    # Writes

    async def create(self, collection: Collection, payload: Mapping[str, Any]) -> Entity:
        return await self.mutations.create(collection, payload)

    async def update(
        self, collection: Collection, entity_id: int, changes: Mapping[str, Any]
    ) -> Entity | None:
        return await self.mutations.update(collection, entity_id, changes)

    async def delete(self, collection: Collection, entity_id: int) -> None:
        await self.mutations.delete(collection, entity_id)

    # Lifecycle

    def reset(self) -> None:
        """Discard all cached state, as a page reload would."""
        self.queries.clear()
        self.cache.clear()
        self.allocator.reset()

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
