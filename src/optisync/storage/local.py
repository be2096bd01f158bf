"""Local in-memory collection cache.

Simple dict-based cache suitable for a single event loop.

Usage:
    cache = LocalCollectionCache()
    cache.replace(Collection.POSTS, posts)
    snapshot = cache.read(Collection.POSTS)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from optisync.core.resources import Collection, Entity, Snapshot
from optisync.core.snapshot import as_snapshot, entity_ids

logger = logging.getLogger(__name__)


class LocalCollectionCache:
    """In-memory Snapshot store with per-Collection version counters.

    Structure:
        _snapshots[collection] = tuple of entities
        _versions[collection] = number of replaces so far

    Snapshots are tuples, so a replaced Snapshot can never be patched in
    place by a reader still holding it.
    """

    def __init__(self) -> None:
        self._snapshots: dict[Collection, Snapshot] = {}
        self._versions: dict[Collection, int] = {}

    def read(self, collection: Collection) -> Snapshot | None:
        return self._snapshots.get(collection)

    def version(self, collection: Collection) -> int:
        return self._versions.get(collection, 0)

    def replace(self, collection: Collection, snapshot: Sequence[Entity]) -> int:
        """Swap in ``snapshot``. Last write wins.

        Raises:
            ValueError: If two entities in ``snapshot`` share an id.
        """
        stored = as_snapshot(snapshot)
        if len(entity_ids(stored)) != len(stored):
            raise ValueError(f"duplicate ids in {collection.value} snapshot")

        self._snapshots[collection] = stored
        version = self._versions.get(collection, 0) + 1
        self._versions[collection] = version
        logger.debug("cache %s -> v%d (%d entities)", collection.value, version, len(stored))
        return version

    def compare_and_replace(
        self,
        collection: Collection,
        snapshot: Sequence[Entity],
        expected_version: int,
    ) -> bool:
        if self.version(collection) != expected_version:
            return False
        self.replace(collection, snapshot)
        return True

    def clear(self) -> None:
        # Versions survive a clear so stale compare-and-replace calls still fail.
        for collection in self._snapshots:
            self._versions[collection] += 1
        self._snapshots.clear()

    def __contains__(self, collection: Collection) -> bool:
        return collection in self._snapshots
