"""Optimistic mutation pipeline.

Every create/update/delete runs four ordered phases:

1. Begin: fence background reads, capture the current Snapshot as the
   rollback point.
2. Optimistic apply: patch the cache right away, then call the Transport.
3. Reconcile (success): fold the server's answer into the *current*
   Snapshot, swapping a provisional id for the server id in place.
4. Rollback (failure): restore the Phase-1 Snapshot by reference.

Phases 1 and 2 contain no await, so no other coroutine can observe the
cache between capture and patch.

Usage:
    pipeline = MutationPipeline(cache, queries, transport, allocator, notifier=sink)
    user = await pipeline.create(Collection.USERS, {"name": "B"})
    await pipeline.update(Collection.USERS, user.id, {"email": "b@example.com"})
    await pipeline.delete(Collection.USERS, user.id)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, NoReturn

from optisync.adapters.protocol import HighlightSink, NotificationSink, Transport
from optisync.core.resources import Collection, Entity, Snapshot
from optisync.core.snapshot import (
    append_entity,
    entity_ids,
    find_index,
    merge_entity,
    remove_entity,
    substitute_entity,
)
from optisync.errors import EntityNotCachedError, MutationError, TransportError
from optisync.mutation.models import MutationKind, MutationPolicy, MutationRecord
from optisync.query.coordinator import QueryCoordinator
from optisync.storage.allocator import ProvisionalIdAllocator
from optisync.storage.protocol import CollectionCache

logger = logging.getLogger(__name__)


class MutationPipeline:
    """Write side of the engine.

    Overlapping mutations on one Collection are last-writer-wins at the
    Snapshot level: a rollback restores its own Phase-1 Snapshot and discards
    whatever other mutations applied in the meantime.

    Args:
        cache: Cache shared with the query coordinator.
        queries: Coordinator whose reads are fenced before each write.
        transport: Performs the actual writes.
        allocator: Source of provisional ids for created entities.
        notifier: Receives success/failure events.
        highlighter: Receives the resolved id of each created entity.
        policy: Post-success behavior. Defaults to no refetch.
    """

    def __init__(
        self,
        cache: CollectionCache,
        queries: QueryCoordinator,
        transport: Transport,
        allocator: ProvisionalIdAllocator,
        notifier: NotificationSink | None = None,
        highlighter: HighlightSink | None = None,
        policy: MutationPolicy | None = None,
    ) -> None:
        self._cache = cache
        self._queries = queries
        self._transport = transport
        self._allocator = allocator
        self._notifier = notifier
        self._highlighter = highlighter
        self._policy = policy or MutationPolicy()

    async def create(self, collection: Collection, payload: Mapping[str, Any]) -> Entity:
        """Create an entity optimistically under a provisional id.

        Returns:
            The reconciled entity as it now sits in the cache.

        Raises:
            pydantic.ValidationError: If ``payload`` cannot form an entity.
                Raised before the cache is touched.
            MutationError: If the Transport failed; the cache has been rolled back.
        """
        entity_type = collection.entity_type
        entity_type.validate_payload(payload)

        record = self._begin(MutationKind.CREATE, collection, payload=payload)
        self._allocator.observe(collection, entity_ids(record.rollback))
        record.provisional_id = self._allocator.allocate(collection)
        optimistic = entity_type.from_payload(record.provisional_id, payload)
        self._apply(record, append_entity(record.rollback, optimistic))

        try:
            confirmed = await self._transport.create(collection, optimistic.payload())
        except Exception as e:
            self._fail(record, e)
        except BaseException:
            # Cancelled mid-flight: restore, but leave reporting to the canceller.
            self.rollback(record)
            raise

        entity = self._reconcile_create(record, confirmed)
        await self._settle(record)
        return entity

    async def update(
        self, collection: Collection, entity_id: int, changes: Mapping[str, Any]
    ) -> Entity | None:
        """Shallow-merge ``changes`` into an entity optimistically.

        Returns:
            The entity as it now sits in the cache, or None if it is not cached.

        Raises:
            MutationError: If the Transport failed; the cache has been rolled back.
        """
        record = self._begin(
            MutationKind.UPDATE, collection, payload=changes, target_id=entity_id
        )

        try:
            patched = merge_entity(record.rollback, entity_id, changes)
        except EntityNotCachedError:
            logger.debug(
                "%s %d not cached; update sent without optimistic patch", collection.label, entity_id
            )
            body = dict(changes)
        else:
            self._apply(record, patched)
            body = self._entity_at(patched, entity_id).payload()

        try:
            confirmed = await self._transport.update(collection, entity_id, body)
        except Exception as e:
            self._fail(record, e)
        except BaseException:
            self.rollback(record)
            raise

        entity = self._reconcile_update(record, confirmed)
        await self._settle(record)
        return entity

    async def delete(self, collection: Collection, entity_id: int) -> None:
        """Remove an entity optimistically.

        Raises:
            MutationError: If the Transport failed; the cache has been rolled back.
        """
        record = self._begin(MutationKind.DELETE, collection, target_id=entity_id)

        try:
            self._apply(record, remove_entity(record.rollback, entity_id))
        except EntityNotCachedError:
            logger.debug(
                "%s %d not cached; delete sent without optimistic patch", collection.label, entity_id
            )

        try:
            await self._transport.delete(collection, entity_id)
        except Exception as e:
            self._fail(record, e)
        except BaseException:
            self.rollback(record)
            raise

        record.resolved_id = entity_id
        await self._settle(record)

    def rollback(self, record: MutationRecord) -> Snapshot:
        """Restore the Snapshot captured when ``record`` began. Idempotent."""
        self._cache.replace(record.collection, record.rollback)
        logger.debug("rolled back %s %s", record.kind.value, record.collection.value)
        return record.rollback

    # Phases

    def _begin(
        self,
        kind: MutationKind,
        collection: Collection,
        payload: Mapping[str, Any] | None = None,
        target_id: int | None = None,
    ) -> MutationRecord:
        self._queries.suspend(collection)
        current = self._cache.read(collection)
        return MutationRecord(
            kind=kind,
            collection=collection,
            rollback=() if current is None else current,
            payload=dict(payload or {}),
            target_id=target_id,
        )

    def _apply(self, record: MutationRecord, snapshot: Snapshot) -> None:
        self._cache.replace(record.collection, snapshot)
        self._queries.mark_fresh(record.collection)
        logger.debug(
            "applied optimistic %s to %s (id=%s)",
            record.kind.value,
            record.collection.value,
            record.entity_id,
        )

    def _reconcile_create(self, record: MutationRecord, confirmed: Entity) -> Entity:
        collection = record.collection
        provisional_id = record.provisional_id
        assert provisional_id is not None
        self._allocator.observe(collection, (confirmed.id,))

        current = self._current(collection)
        index = find_index(current, provisional_id)
        holder = find_index(current, confirmed.id)

        if index is None:
            if holder is None:
                logger.warning(
                    "provisional %s %d gone before reconciliation; appending server copy",
                    collection.label,
                    provisional_id,
                )
                self._cache.replace(collection, append_entity(current, confirmed))
            else:
                logger.warning(
                    "provisional %s %d gone and server id %d already cached; keeping cache",
                    collection.label,
                    provisional_id,
                    confirmed.id,
                )
                # The cached row under that id is a different entity; nothing to highlight.
                record.resolved_id = None
                return confirmed
            record.resolved_id = confirmed.id
            return confirmed

        if holder is not None and holder != index:
            # Server reused an id another cached entity already holds.
            logger.warning(
                "server id %d for %s already cached; keeping provisional id %d",
                confirmed.id,
                collection.label,
                provisional_id,
            )
            reconciled = confirmed.model_copy(update={"id": provisional_id})
        else:
            reconciled = confirmed

        self._cache.replace(collection, substitute_entity(current, provisional_id, reconciled))
        record.resolved_id = reconciled.id
        logger.debug("reconciled %s %d -> %d", collection.label, provisional_id, reconciled.id)
        return reconciled

    def _reconcile_update(self, record: MutationRecord, confirmed: Entity | None) -> Entity | None:
        collection = record.collection
        target_id = record.target_id
        assert target_id is not None
        record.resolved_id = target_id
        current = self._current(collection)

        if confirmed is None:
            # No confirmation: the optimistic version stays authoritative.
            index = find_index(current, target_id)
            return None if index is None else current[index]

        if confirmed.id != target_id:
            confirmed = confirmed.model_copy(update={"id": target_id})

        try:
            self._cache.replace(collection, substitute_entity(current, target_id, confirmed))
        except EntityNotCachedError:
            logger.debug("%s %d left the cache before reconciliation", collection.label, target_id)
            return None
        return confirmed

    async def _settle(self, record: MutationRecord) -> None:
        collection = record.collection
        logger.info(
            "%s %s succeeded (id=%s)", record.kind.value, collection.label, record.resolved_id
        )

        if self._notifier is not None:
            self._notifier.on_mutation_succeeded(collection, record.kind, record.resolved_id)

        if (
            record.kind is MutationKind.CREATE
            and self._highlighter is not None
            and record.resolved_id is not None
        ):
            asyncio.get_running_loop().call_soon(
                self._highlighter.highlight, collection, record.resolved_id
            )

        if self._policy.refetch_after_write:
            try:
                await self._queries.invalidate(collection)
            except TransportError as e:
                logger.warning(
                    "refetch of %s after %s failed: %s", collection.value, record.kind.value, e
                )

    def _fail(self, record: MutationRecord, error: Exception) -> NoReturn:
        self.rollback(record)
        message = f"Failed to {record.kind.value} {record.collection.label}: {error}"
        logger.error("%s", message, exc_info=error)
        if self._notifier is not None:
            self._notifier.on_mutation_failed(record.collection, record.kind, message)
        raise MutationError(record, message) from error

    # Helpers

    def _current(self, collection: Collection) -> Snapshot:
        current = self._cache.read(collection)
        return () if current is None else current

    @staticmethod
    def _entity_at(snapshot: Snapshot, entity_id: int) -> Entity:
        index = find_index(snapshot, entity_id)
        if index is None:
            raise EntityNotCachedError(entity_id)
        return snapshot[index]
