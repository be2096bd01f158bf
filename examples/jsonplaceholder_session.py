"""Optimistic CRUD session against the JSONPlaceholder mock API.

Demonstrates:
- Read-through fetch with status reporting
- Optimistic create with provisional -> server id reconciliation
- Optimistic update and delete
- Rollback when the backend rejects a write

JSONPlaceholder accepts writes but never persists them, so the local cache
is the only place the session's changes live.
"""

import asyncio
import logging

from optisync import ClientSettings, Collection, MutationError, SyncClient
from optisync.adapters.notify import LoggingNotificationSink


class PrintHighlighter:
    """Prints instead of scrolling to and flashing a table row."""

    def highlight(self, collection: Collection, resolved_id: int) -> None:
        print(f"  * highlight {collection.label}-{resolved_id}")


def show(client: SyncClient, collection: Collection, limit: int = 3) -> None:
    state = client.state(collection)
    rows = state.data or ()
    print(f"{collection.value}: {state.status.name}, {len(rows)} rows")
    for entity in rows[-limit:]:
        print(f"  {entity.to_wire()}")


async def main_async() -> None:
    settings = ClientSettings(fetch_max_attempts=2)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    async with SyncClient.from_settings(
        settings,
        notifier=LoggingNotificationSink(),
        highlighter=PrintHighlighter(),
    ) as client:
        # Two concurrent reads share one request
        await asyncio.gather(client.fetch(Collection.USERS), client.fetch(Collection.USERS))
        await client.fetch(Collection.POSTS)
        show(client, Collection.USERS)

        user = await client.create(
            Collection.USERS, {"name": "Ada", "username": "ada", "email": "ada@example.com"}
        )
        show(client, Collection.USERS)

        post = await client.create(
            Collection.POSTS, {"title": "Hello", "body": "First post", "userId": user.id}
        )
        await client.update(Collection.POSTS, 1, {"title": "Edited title"})
        await client.delete(Collection.USERS, 2)
        show(client, Collection.POSTS)

        # The mock 500s on PUT for ids it never stored; the edit is rolled back.
        try:
            await client.update(Collection.POSTS, post.id, {"title": "Never saved"})
        except MutationError as e:
            print(f"rolled back: {e.message}")
        show(client, Collection.POSTS)

    print("Done.")


def main():
    """Sync wrapper for main_async (for simple script usage)."""
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
