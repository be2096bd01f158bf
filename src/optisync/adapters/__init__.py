"""External integration adapters.

Provides protocols and implementations for:
- Transport: CRUD calls against the backend
- NotificationSink / HighlightSink: mutation outcome consumers

Usage:
    from optisync.adapters import Transport, NotificationSink

    # Implementations
    from optisync.adapters.http import HttpTransport
    from optisync.adapters.notify import LoggingNotificationSink
"""

from optisync.adapters.protocol import HighlightSink, NotificationSink, Transport

__all__ = [
    "Transport",
    "NotificationSink",
    "HighlightSink",
]
