"""Query models and configuration.

Types describing the read side: per-Collection status exposed to consumers
and the retry policy applied to background reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Literal

from optisync.core.resources import Collection, Snapshot


class QueryStatus(Enum):
    """Lifecycle of the read side of one Collection."""

    IDLE = auto()
    """Nothing cached and no read in flight."""

    PENDING = auto()
    """First read in flight, nothing cached yet."""

    SUCCESS = auto()
    """A Snapshot is cached and the last read (if any) succeeded."""

    ERROR = auto()
    """The last read failed. Cached data, if any, is still served."""


@dataclass(frozen=True, slots=True)
class QueryState:
    """Point-in-time view of one Collection for consumers (tables, pages)."""

    collection: Collection
    status: QueryStatus
    data: Snapshot | None = None
    error: BaseException | None = None
    updated_at: float | None = None
    """Clock reading of the last successful read or local write."""

    is_fetching: bool = False
    is_stale: bool = True

    @property
    def is_pending(self) -> bool:
        return self.status is QueryStatus.PENDING

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for retrying failed reads.

    Mutations are never retried; this applies to ``QueryCoordinator.fetch`` only.
    """

    max_attempts: int = 1
    """Maximum attempts (1 = no retry). Default: no retry."""

    backoff: Literal["none", "linear", "exponential"] = "none"
    """Backoff strategy between retries."""

    base_delay: float = 0.1
    """Base delay in seconds for backoff calculation."""
