"""Logging-backed notification sink.

Headless stand-in for toast messages: every mutation outcome becomes one
log line.
"""

from __future__ import annotations

import logging

from optisync.core.resources import Collection
from optisync.mutation.models import MutationKind

logger = logging.getLogger(__name__)


def success_message(collection: Collection, kind: MutationKind) -> str:
    """Human-readable success text, e.g. "User created successfully"."""
    return f"{collection.label.capitalize()} {kind.past_tense} successfully"


class LoggingNotificationSink:
    """NotificationSink that logs successes at INFO and failures at WARNING."""

    def on_mutation_succeeded(
        self, collection: Collection, kind: MutationKind, resolved_id: int | None
    ) -> None:
        logger.info("%s (id=%s)", success_message(collection, kind), resolved_id)

    def on_mutation_failed(self, collection: Collection, kind: MutationKind, message: str) -> None:
        logger.warning("%s", message)
