"""Client cache behaviour against an in-memory favourites API."""

import asyncio
import json
from collections.abc import AsyncIterator

import httpx
import pytest

from omahub.client import CacheState, FavouritesCache, Notice

pytestmark = pytest.mark.anyio

TOKENS = {"token-a": "user-a", "token-b": "user-b"}


def _error(status_code: int, error_type: str, message: str) -> httpx.Response:
    return httpx.Response(
        status_code, json={"error": {"type": error_type, "message": message}}
    )


class FakeFavouritesApi:
    """Just enough of ``/api/favourites`` to drive the cache."""

    def __init__(self) -> None:
        self.rows: dict[str, list[dict[str, object]]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.hold_reads_for: str | None = None
        self.release_reads = asyncio.Event()
        self.hold_writes = False
        self.release_writes = asyncio.Event()
        self.requests: list[tuple[str, str]] = []

    def _user(self, request: httpx.Request) -> str | None:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        return TOKENS.get(token)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        user_id = self._user(request)
        self.requests.append((request.method, user_id or "anonymous"))
        if user_id is None:
            return _error(401, "authentication_error", "Authentication required")

        if request.method == "GET":
            # the list is read when the request arrives, not when it is answered
            favourites = list(self.rows.get(user_id, []))
            if self.hold_reads_for == user_id:
                await self.release_reads.wait()
            if self.fail_reads:
                return _error(503, "transient_error", "down")
            return httpx.Response(200, json={"favourites": favourites})

        if self.hold_writes:
            await self.release_writes.wait()
        if self.fail_writes:
            return _error(503, "transient_error", "Failed to add to favourites")

        rows = self.rows.setdefault(user_id, [])
        if request.method == "POST":
            body = json.loads(request.content)
            key = (body["item_id"], body["item_type"])
            if any((row["id"], row["item_type"]) == key for row in rows):
                return httpx.Response(200, json={"status": "already_exists"})
            rows.insert(0, {"id": key[0], "item_type": key[1]})
            return httpx.Response(201, json={"status": "added"})

        key = (request.url.params["item_id"], request.url.params["item_type"])
        before = len(rows)
        rows[:] = [row for row in rows if (row["id"], row["item_type"]) != key]
        status = "removed" if len(rows) < before else "not_found"
        return httpx.Response(200, json={"status": status})


@pytest.fixture
def api() -> FakeFavouritesApi:
    return FakeFavouritesApi()


@pytest.fixture
async def http(api: FakeFavouritesApi) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(api), base_url="http://testserver"
    ) as client:
        yield client


@pytest.fixture
def notices() -> list[tuple[str, str]]:
    return []


@pytest.fixture
def cache(
    http: httpx.AsyncClient, notices: list[tuple[str, str]]
) -> FavouritesCache:
    return FavouritesCache(
        http, notify=lambda kind, message: notices.append((kind, message))
    )


async def test_bind_user_loads_favourites(
    api: FakeFavouritesApi, cache: FavouritesCache
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    assert cache.state is CacheState.UNINITIALIZED

    assert await cache.bind_user("user-a", "token-a")

    assert cache.state is CacheState.READY
    assert cache.loading is False
    assert cache.error is None
    assert cache.is_favourite("b1", "brand")
    assert not cache.is_favourite("b1", "product")


async def test_toggle_adds_then_removes_after_server_confirms(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    await cache.bind_user("user-a", "token-a")

    assert await cache.toggle_favourite("p1", "product")
    assert cache.is_favourite("p1", "product")
    assert api.rows["user-a"] == [{"id": "p1", "item_type": "product"}]

    assert await cache.toggle_favourite("p1", "product")
    assert not cache.is_favourite("p1", "product")
    assert api.rows["user-a"] == []

    assert [kind for kind, _ in notices] == [Notice.ADDED.value, Notice.REMOVED.value]


async def test_add_existing_item_reports_already_exists(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    await cache.bind_user("user-a", "token-a")

    assert await cache.add_favourite("b1", "brand")

    assert notices == [(Notice.ALREADY_EXISTS.value, "Already in favourites")]
    assert len(cache.favourites) == 1


async def test_failed_write_leaves_membership_unchanged(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    await cache.bind_user("user-a", "token-a")
    api.fail_writes = True

    assert not await cache.add_favourite("p1", "product")

    assert not cache.is_favourite("p1", "product")
    assert cache.state is CacheState.READY
    assert notices == [(Notice.ERROR.value, "Failed to add to favourites")]


async def test_refresh_failure_keeps_last_good_snapshot(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    await cache.bind_user("user-a", "token-a")
    api.fail_reads = True

    assert not await cache.refresh()

    assert cache.state is CacheState.ERROR
    assert cache.error == "Failed to load favourites"
    assert cache.is_favourite("b1", "brand")
    assert notices == [(Notice.ERROR.value, "Failed to load favourites")]


async def test_load_error_is_distinguishable_from_empty_list(
    api: FakeFavouritesApi, http: httpx.AsyncClient
) -> None:
    empty = FavouritesCache(http)
    await empty.bind_user("user-a", "token-a")

    api.fail_reads = True
    failed = FavouritesCache(http)
    await failed.bind_user("user-b", "token-b")

    assert empty.favourites == failed.favourites == ()
    assert empty.state is CacheState.READY
    assert failed.state is CacheState.ERROR


async def test_signed_out_writes_ask_for_sign_in(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    assert not await cache.add_favourite("b1", "brand")
    assert not await cache.remove_favourite("b1", "brand")
    assert not await cache.refresh()

    assert [kind for kind, _ in notices] == [
        Notice.SIGN_IN_REQUIRED.value,
        Notice.SIGN_IN_REQUIRED.value,
    ]
    assert api.requests == []


async def test_switching_users_drops_previous_contents(
    api: FakeFavouritesApi, cache: FavouritesCache
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    api.rows["user-b"] = [{"id": "c9", "item_type": "catalogue"}]
    await cache.bind_user("user-a", "token-a")

    await cache.bind_user("user-b", "token-b")

    assert cache.user_id == "user-b"
    assert not cache.is_favourite("b1", "brand")
    assert cache.is_favourite("c9", "catalogue")


async def test_sign_out_clears_cache(
    api: FakeFavouritesApi, cache: FavouritesCache
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    await cache.bind_user("user-a", "token-a")

    cache.sign_out()

    assert cache.favourites == ()
    assert cache.state is CacheState.UNINITIALIZED
    assert cache.user_id is None


async def test_response_for_previous_user_is_discarded(
    api: FakeFavouritesApi, cache: FavouritesCache
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    api.rows["user-b"] = [{"id": "c9", "item_type": "catalogue"}]
    api.hold_reads_for = "user-a"

    slow_load = asyncio.create_task(cache.bind_user("user-a", "token-a"))
    await asyncio.sleep(0)
    while not api.requests:
        await asyncio.sleep(0)

    api.hold_reads_for = None
    await cache.bind_user("user-b", "token-b")
    api.release_reads.set()

    assert await slow_load is False
    assert cache.user_id == "user-b"
    assert cache.is_favourite("c9", "catalogue")
    assert not cache.is_favourite("b1", "brand")
    assert cache.state is CacheState.READY


async def _wait_for_request(api: FakeFavouritesApi, request: tuple[str, str]) -> None:
    while request not in api.requests:
        await asyncio.sleep(0)


async def test_older_refresh_cannot_overwrite_newer_one(
    api: FakeFavouritesApi, cache: FavouritesCache
) -> None:
    await cache.bind_user("user-a", "token-a")
    api.requests.clear()
    api.hold_reads_for = "user-a"

    stale_refresh = asyncio.create_task(cache.refresh())
    await _wait_for_request(api, ("GET", "user-a"))

    api.hold_reads_for = None
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    assert await cache.refresh()
    api.release_reads.set()

    assert await stale_refresh is False
    assert cache.state is CacheState.READY
    assert cache.is_favourite("b1", "brand")


async def test_add_finishing_after_sign_out_is_silent(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    await cache.bind_user("user-a", "token-a")
    api.hold_writes = True

    pending_add = asyncio.create_task(cache.add_favourite("p1", "product"))
    await _wait_for_request(api, ("POST", "user-a"))
    cache.sign_out()
    api.release_writes.set()

    assert await pending_add is False
    assert notices == []
    assert cache.state is CacheState.UNINITIALIZED
    assert cache.favourites == ()


async def test_remove_finishing_after_user_switch_is_silent(
    api: FakeFavouritesApi, cache: FavouritesCache, notices: list[tuple[str, str]]
) -> None:
    api.rows["user-a"] = [{"id": "b1", "item_type": "brand"}]
    api.rows["user-b"] = [{"id": "c9", "item_type": "catalogue"}]
    await cache.bind_user("user-a", "token-a")
    api.hold_writes = True

    pending_remove = asyncio.create_task(cache.remove_favourite("b1", "brand"))
    await _wait_for_request(api, ("DELETE", "user-a"))
    await cache.bind_user("user-b", "token-b")
    api.release_writes.set()

    assert await pending_remove is False
    assert notices == []
    assert cache.user_id == "user-b"
    assert cache.is_favourite("c9", "catalogue")
    assert not cache.is_favourite("b1", "brand")
