"""Storage backends and provisional id allocation."""

from optisync.storage.allocator import ProvisionalIdAllocator
from optisync.storage.local import LocalCollectionCache
from optisync.storage.protocol import CollectionCache

__all__ = [
    "CollectionCache",
    "LocalCollectionCache",
    "ProvisionalIdAllocator",
]
