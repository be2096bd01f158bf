"""optisync: optimistic cache synchronization for CRUD collections.

Mutations show up in the local cache before the network round-trip
completes and are rolled back if the server rejects them.

Usage:
    from optisync import ClientSettings, Collection, SyncClient

    async with SyncClient.from_settings(ClientSettings()) as client:
        await client.fetch(Collection.USERS)
        user = await client.create(Collection.USERS, {"name": "B"})
        # client.snapshot(Collection.USERS) already holds the new user
"""

__version__ = "0.1.0"

# Core primitives
from optisync.core import (
    Collection,
    Entity,
    Post,
    Snapshot,
    User,
)

# Errors
from optisync.errors import (
    EntityNotCachedError,
    MutationError,
    ProvisionalIdExhaustedError,
    SyncError,
    TransportError,
)

# Storage
from optisync.storage import (
    CollectionCache,
    LocalCollectionCache,
    ProvisionalIdAllocator,
)

# Adapters
from optisync.adapters import (
    HighlightSink,
    NotificationSink,
    Transport,
)

# Queries
from optisync.query import (
    QueryCoordinator,
    QueryState,
    QueryStatus,
    RetryPolicy,
)

# Mutations
from optisync.mutation import (
    MutationKind,
    MutationPipeline,
    MutationPolicy,
    MutationRecord,
)

# Configuration and composition
from optisync.config import ClientSettings
from optisync.client import SyncClient

__all__ = [
    # Version
    "__version__",
    # Core
    "Collection",
    "Entity",
    "User",
    "Post",
    "Snapshot",
    # Errors
    "SyncError",
    "TransportError",
    "EntityNotCachedError",
    "ProvisionalIdExhaustedError",
    "MutationError",
    # Storage
    "CollectionCache",
    "LocalCollectionCache",
    "ProvisionalIdAllocator",
    # Adapters
    "Transport",
    "NotificationSink",
    "HighlightSink",
    # Queries
    "QueryCoordinator",
    "QueryState",
    "QueryStatus",
    "RetryPolicy",
    # Mutations
    "MutationPipeline",
    "MutationKind",
    "MutationPolicy",
    "MutationRecord",
    # Client
    "ClientSettings",
    "SyncClient",
]
