"""Read-through query coordinator.

Issues Transport reads per Collection, coalesces concurrent reads, tracks
staleness, and fences reads that a mutation has overtaken.

Usage:
    queries = QueryCoordinator(cache, transport, stale_after=120.0)
    users = await queries.fetch(Collection.USERS)
    state = queries.state(Collection.USERS)

    # Before an optimistic write:
    queries.suspend(Collection.USERS)
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from functools import partial

import tenacity

from optisync.adapters.protocol import Transport
from optisync.core.resources import Collection, Entity, Snapshot
from optisync.core.snapshot import as_snapshot
from optisync.errors import TransportError
from optisync.query.models import QueryState, QueryStatus, RetryPolicy
from optisync.storage.protocol import CollectionCache

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = 120.0


class QueryCoordinator:
    """Read side of the engine.

    Each read captures two tokens when it starts: the cache version and the
    Collection's suspension fence. Its result is written back only if both
    are unchanged on completion (compare-and-swap), so a slow read can never
    overwrite a Snapshot produced by a later optimistic write.

    Args:
        cache: Cache shared with the mutation pipeline.
        transport: Performs the actual reads.
        stale_after: Seconds a completed read is reused before the next
            ``fetch`` goes back to the Transport.
        retry_policy: Retry configuration for failed reads. Defaults to no retry.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        cache: CollectionCache,
        transport: Transport,
        stale_after: float = DEFAULT_STALE_AFTER,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache = cache
        self._transport = transport
        self._stale_after = stale_after
        self._retry_policy = retry_policy or RetryPolicy()
        self._clock = clock
        self._inflight: dict[Collection, asyncio.Task[Snapshot]] = {}
        self._fences: dict[Collection, int] = {}
        self._fresh_at: dict[Collection, float] = {}
        self._errors: dict[Collection, BaseException] = {}

    async def fetch(self, collection: Collection, *, force: bool = False) -> Snapshot:
        """Return the Collection's Snapshot, reading through to the Transport if needed.

        Joins an in-flight read when there is one. Otherwise serves the
        cached Snapshot while it is fresh, and starts a new read when it is
        stale, absent, or ``force`` is set.

        Raises:
            TransportError: If the read (after retries) failed.
        """
        task = self._inflight.get(collection)
        if task is None:
            cached = self._cache.read(collection)
            if cached is not None and not force and not self.is_stale(collection):
                return cached
            # Tokens are taken now, not when the task first runs, so a suspend()
            # issued before that still fences this read.
            fence = self._fences.get(collection, 0)
            start_version = self._cache.version(collection)
            task = asyncio.get_running_loop().create_task(
                self._read(collection, fence, start_version)
            )
            self._inflight[collection] = task
            task.add_done_callback(partial(self._forget, collection))
        # Shielded: a cancelled consumer must not cancel a read others may be joining.
        return await asyncio.shield(task)

    def suspend(self, collection: Collection) -> None:
        """Fence off reads already in flight for ``collection``.

        They run to completion, but their results are not written back. The
        next ``fetch`` starts a fresh read instead of joining them.
        """
        self._fences[collection] = self._fences.get(collection, 0) + 1
        if self._inflight.pop(collection, None) is not None:
            logger.debug("suspended in-flight read of %s", collection.value)

    def mark_fresh(self, collection: Collection) -> None:
        """Restart the staleness clock after a local write."""
        self._fresh_at[collection] = self._clock()

    async def invalidate(self, collection: Collection) -> Snapshot:
        """Discard freshness and read ``collection`` again right away."""
        self._fresh_at.pop(collection, None)
        self.suspend(collection)
        return await self.fetch(collection, force=True)

    def is_stale(self, collection: Collection) -> bool:
        fresh_at = self._fresh_at.get(collection)
        return fresh_at is None or self._clock() - fresh_at >= self._stale_after

    def is_fetching(self, collection: Collection) -> bool:
        return collection in self._inflight

    def state(self, collection: Collection) -> QueryState:
        """Current data plus loading/error status for consumers."""
        data = self._cache.read(collection)
        error = self._errors.get(collection)
        fetching = self.is_fetching(collection)

        if error is not None:
            status = QueryStatus.ERROR
        elif data is not None:
            status = QueryStatus.SUCCESS
        elif fetching:
            status = QueryStatus.PENDING
        else:
            status = QueryStatus.IDLE

        return QueryState(
            collection=collection,
            status=status,
            data=data,
            error=error,
            updated_at=self._fresh_at.get(collection),
            is_fetching=fetching,
            is_stale=self.is_stale(collection),
        )

    def clear(self) -> None:
        """Forget all read state. In-flight reads are fenced, not cancelled."""
        for collection in list(self._inflight) + list(self._fences):
            self._fences[collection] = self._fences.get(collection, 0) + 1
        self._inflight.clear()
        self._fresh_at.clear()
        self._errors.clear()

    async def _read(self, collection: Collection, fence: int, start_version: int) -> Snapshot:
        try:
            entities = await self._list_with_retry(collection)
        except TransportError as e:
            logger.warning("read of %s failed: %s", collection.value, e)
            if self._fences.get(collection, 0) == fence:
                self._errors[collection] = e
            raise

        snapshot = as_snapshot(entities)

        if self._fences.get(collection, 0) != fence:
            logger.debug("dropping suspended read of %s", collection.value)
            return self._current_or(collection, snapshot)

        if not self._cache.compare_and_replace(collection, snapshot, start_version):
            logger.debug(
                "dropping outdated read of %s (started at v%d, now v%d)",
                collection.value,
                start_version,
                self._cache.version(collection),
            )
            return self._current_or(collection, snapshot)

        self._errors.pop(collection, None)
        self._fresh_at[collection] = self._clock()
        logger.info("fetched %d %s", len(snapshot), collection.value)
        return snapshot

    def _current_or(self, collection: Collection, fallback: Snapshot) -> Snapshot:
        current = self._cache.read(collection)
        return fallback if current is None else current

    async def _list_with_retry(self, collection: Collection) -> Sequence[Entity]:
        policy = self._retry_policy

        if policy.max_attempts <= 1:
            return await self._transport.list(collection)

        async for attempt in self._build_retryer(policy):
            with attempt:
                return await self._transport.list(collection)

        raise RuntimeError("retryer exited without a result")  # pragma: no cover

    def _build_retryer(self, policy: RetryPolicy) -> tenacity.AsyncRetrying:
        """Build a tenacity retryer from RetryPolicy configuration."""
        stop = tenacity.stop_after_attempt(policy.max_attempts)

        wait: tenacity.wait.wait_base
        if policy.backoff == "exponential":
            wait = tenacity.wait_exponential(multiplier=policy.base_delay, min=policy.base_delay)
        elif policy.backoff == "linear":
            wait = tenacity.wait_incrementing(start=policy.base_delay, increment=policy.base_delay)
        else:
            wait = tenacity.wait_none()

        return tenacity.AsyncRetrying(
            stop=stop,
            wait=wait,
            retry=tenacity.retry_if_exception_type(TransportError),
            reraise=True,
        )

    def _forget(self, collection: Collection, task: asyncio.Task[Snapshot]) -> None:
        if self._inflight.get(collection) is task:
            del self._inflight[collection]
        if not task.cancelled():
            # Mark retrieved; the error is recorded in state() and raised to joined callers.
            task.exception()
