"""Provisional id allocation service.

ProvisionalIdAllocator is a stateful service that hands out placeholder ids
for entities the server has not confirmed yet.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from optisync.core.resources import Collection
from optisync.errors import ProvisionalIdExhaustedError

DEFAULT_SEEDS: dict[Collection, int] = {
    Collection.USERS: 100,
    Collection.POSTS: 1000,
}

# Largest integer a JSON/JavaScript peer can represent exactly.
MAX_PROVISIONAL_ID = 2**53 - 1


class ProvisionalIdAllocator:
    """Allocates strictly increasing provisional ids, one counter per Collection.

    Counters start at a seed above the plausible range of server-assigned
    ids. ``observe`` lifts a counter past server ids seen at runtime, so a
    provisional id never equals a ServerId the client already knows about.

    Args:
        seeds: Starting value per Collection; the first id handed out is seed + 1.
        max_id: Ceiling past which allocation fails.
    """

    def __init__(
        self,
        seeds: Mapping[Collection, int] | None = None,
        max_id: int = MAX_PROVISIONAL_ID,
    ) -> None:
        self._seeds = {**DEFAULT_SEEDS, **(seeds or {})}
        self._max_id = max_id
        self._counters: dict[Collection, int] = dict(self._seeds)

    def allocate(self, collection: Collection) -> int:
        """Allocate the next provisional id for ``collection``.

        Returns:
            An id greater than every id previously allocated or observed.

        Raises:
            ProvisionalIdExhaustedError: If the counter would pass ``max_id``.
        """
        next_id = self._counters[collection] + 1
        if next_id > self._max_id:
            raise ProvisionalIdExhaustedError(
                f"provisional {collection.label} ids exhausted at {self._max_id}"
            )
        self._counters[collection] = next_id
        return next_id

    def observe(self, collection: Collection, ids: Iterable[int]) -> None:
        """Raise the counter floor above every id in ``ids``."""
        highest = max(ids, default=None)
        if highest is not None and highest > self._counters[collection]:
            self._counters[collection] = highest

    def peek(self, collection: Collection) -> int:
        """Last id allocated or observed (the seed if nothing yet)."""
        return self._counters[collection]

    def reset(self) -> None:
        """Return every counter to its seed."""
        self._counters = dict(self._seeds)
