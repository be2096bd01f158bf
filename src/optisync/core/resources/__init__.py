"""Resource model: collections, entity shapes and the Snapshot type."""

from optisync.core.resources.models import Collection, Entity, Post, Snapshot, User

__all__ = [
    "Collection",
    "Entity",
    "User",
    "Post",
    "Snapshot",
]
