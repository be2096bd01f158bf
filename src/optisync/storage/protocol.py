"""Collection cache protocol for swappable backends.

The cache holds exactly one current Snapshot per Collection. It never
exposes partial updates: callers read the current Snapshot, compute a new
one, and swap it in.

Usage:
    cache = LocalCollectionCache()
    version = cache.replace(Collection.USERS, (user,))
    cache.compare_and_replace(Collection.USERS, (), expected_version=version)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from optisync.core.resources import Collection, Entity, Snapshot


class CollectionCache(Protocol):
    """Abstract cache interface. Implementations own the Snapshots."""

    def read(self, collection: Collection) -> Snapshot | None:
        """Current Snapshot, or None if nothing has been stored yet."""
        ...

    def version(self, collection: Collection) -> int:
        """Monotonic version of the current Snapshot (0 before first replace)."""
        ...

    def replace(self, collection: Collection, snapshot: Sequence[Entity]) -> int:
        """Swap in a new Snapshot unconditionally. Returns the new version."""
        ...

    def compare_and_replace(
        self,
        collection: Collection,
        snapshot: Sequence[Entity],
        expected_version: int,
    ) -> bool:
        """Swap in ``snapshot`` only if the version still equals ``expected_version``."""
        ...

    def clear(self) -> None:
        """Discard every Snapshot."""
        ...
