"""End-to-end client session against an in-memory backend."""

import asyncio

import pytest

from conftest import FakeClock, FakeTransport, RecordingSink
from optisync import (
    ClientSettings,
    Collection,
    MutationError,
    Post,
    QueryStatus,
    SyncClient,
    TransportError,
    User,
)


@pytest.fixture
def backend() -> FakeTransport:
    transport = FakeTransport()
    transport.data[Collection.USERS] = [User(id=1, name="A")]
    transport.data[Collection.POSTS] = [Post(id=1, user_id=1, title="first")]
    return transport


@pytest.fixture
def client(backend, sink, clock) -> SyncClient:
    settings = ClientSettings(fetch_max_attempts=1, stale_after=120.0)
    return SyncClient(backend, settings=settings, notifier=sink, highlighter=sink, clock=clock)


def names(client: SyncClient, collection: Collection = Collection.USERS) -> list[str]:
    return [entity.name for entity in client.snapshot(collection) or ()]


@pytest.mark.asyncio
async def test_create_shows_up_before_server_confirms(client, backend, sink):
    await client.fetch(Collection.USERS)
    gate = backend.hold("create")

    pending = asyncio.create_task(client.create(Collection.USERS, {"name": "B"}))
    await asyncio.sleep(0)

    assert [u.id for u in client.snapshot(Collection.USERS)] == [1, 101]

    gate.set()
    created = await pending
    await asyncio.sleep(0)

    assert created.id == 11
    assert [u.id for u in client.snapshot(Collection.USERS)] == [1, 11]
    assert sink.highlighted == [(Collection.USERS, 11)]


@pytest.mark.asyncio
async def test_full_session(client, backend, sink):
    users = await client.fetch(Collection.USERS)
    posts = await client.fetch(Collection.POSTS)
    assert [u.name for u in users] == ["A"]
    assert [p.title for p in posts] == ["first"]

    b = await client.create(Collection.USERS, {"name": "B", "email": "b@example.com"})
    await client.update(Collection.USERS, b.id, {"username": "bee"})
    post = await client.create(Collection.POSTS, {"title": "hello", "userId": b.id})
    await client.delete(Collection.USERS, 1)

    [user] = client.snapshot(Collection.USERS)
    assert (user.id, user.name, user.username, user.email) == (11, "B", "bee", "b@example.com")
    assert [p.id for p in client.snapshot(Collection.POSTS)] == [1, post.id]
    assert post.user_id == 11

    # The backend never stored any of it; the cache stays authoritative while fresh.
    await client.fetch(Collection.USERS)
    assert backend.count("list") == 2
    assert [kind.value for _, kind, _ in sink.succeeded] == ["create", "update", "create", "delete"]


@pytest.mark.asyncio
async def test_failed_mutation_rolls_back_and_reports(client, backend, sink):
    await client.fetch(Collection.POSTS)
    before = client.snapshot(Collection.POSTS)
    backend.fail("update", message="500 Internal Server Error")

    with pytest.raises(MutationError) as info:
        await client.update(Collection.POSTS, 1, {"title": "edited"})

    assert client.snapshot(Collection.POSTS) is before
    assert "Failed to update post" in info.value.message
    assert sink.failed[0][2] == info.value.message


@pytest.mark.asyncio
async def test_stale_cache_refetches(client, backend, clock):
    await client.fetch(Collection.USERS)
    clock.advance(121)

    await client.fetch(Collection.USERS)

    assert backend.count("list") == 2
    assert client.state(Collection.USERS).status is QueryStatus.SUCCESS


@pytest.mark.asyncio
async def test_fetch_error_surfaces_in_state(client, backend):
    backend.fail("list")

    with pytest.raises(TransportError):
        await client.fetch(Collection.USERS)

    state = client.state(Collection.USERS)
    assert state.is_error
    assert state.data is None


@pytest.mark.asyncio
async def test_reset_discards_everything(client, backend):
    await client.fetch(Collection.USERS)
    await client.create(Collection.USERS, {"name": "B"})

    client.reset()

    assert client.snapshot(Collection.USERS) is None
    assert client.state(Collection.USERS).status is QueryStatus.IDLE
    users = await client.fetch(Collection.USERS)
    assert [u.id for u in users] == [1]


@pytest.mark.asyncio
async def test_refetch_after_write_policy(backend, sink, clock):
    settings = ClientSettings(fetch_max_attempts=1, refetch_after_write=True)
    client = SyncClient(backend, settings=settings, notifier=sink, clock=clock)
    await client.fetch(Collection.USERS)

    await client.create(Collection.USERS, {"name": "B"})

    # A non-persisting backend makes the refetch drop the created row.
    assert names(client) == ["A"]
    assert backend.count("list") == 2


@pytest.mark.asyncio
async def test_context_manager_closes_transport(backend):
    closed = []
    backend.close = lambda: closed.append(True)

    async with SyncClient(backend, settings=ClientSettings(fetch_max_attempts=1)) as client:
        await client.fetch(Collection.USERS)

    assert closed == [True]


def test_client_from_settings_builds_http_transport():
    from optisync.adapters.http import HttpTransport

    client = SyncClient.from_settings(ClientSettings(base_url="http://localhost:3000"))

    assert isinstance(client.transport, HttpTransport)
    client.close()


def test_allocator_uses_configured_seeds():
    client = SyncClient(
        FakeTransport(), settings=ClientSettings(user_id_seed=500, post_id_seed=9000)
    )

    assert client.allocator.peek(Collection.USERS) == 500
    assert client.allocator.peek(Collection.POSTS) == 9000
