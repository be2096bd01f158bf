"""Query coordination: read-through fetches, coalescing and staleness."""

from optisync.query.coordinator import DEFAULT_STALE_AFTER, QueryCoordinator
from optisync.query.models import QueryState, QueryStatus, RetryPolicy

__all__ = [
    "QueryCoordinator",
    "QueryState",
    "QueryStatus",
    "RetryPolicy",
    "DEFAULT_STALE_AFTER",
]
