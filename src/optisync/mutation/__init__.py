"""Optimistic mutation pipeline and its models."""

from optisync.mutation.models import MutationKind, MutationPolicy, MutationRecord
from optisync.mutation.pipeline import MutationPipeline

__all__ = [
    "MutationPipeline",
    "MutationKind",
    "MutationPolicy",
    "MutationRecord",
]
