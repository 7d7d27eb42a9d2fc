import httpx
import pytest

from omahub.auth import AuthClient, AuthenticatedUser
from omahub.errors import TransientStoreError

pytestmark = pytest.mark.anyio


def _client(handler) -> AuthClient:
    return AuthClient(transport=httpx.MockTransport(handler))


async def test_get_user_returns_identity_for_valid_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "user-a", "email": "a@example.com"})

    user = await _client(handler).get_user("good-token")

    assert user == AuthenticatedUser(id="user-a", email="a@example.com")
    assert seen[0].url.path == "/auth/v1/user"
    assert seen[0].headers["Authorization"] == "Bearer good-token"


@pytest.mark.parametrize("status_code", [401, 403])
async def test_rejected_token_resolves_to_anonymous(status_code: int) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"msg": "invalid JWT"})

    assert await _client(handler).get_user("expired") is None


async def test_payload_without_id_resolves_to_anonymous() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"email": "a@example.com"})

    assert await _client(handler).get_user("token") is None


async def test_provider_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(TransientStoreError):
        await _client(handler).get_user("token")


async def test_provider_unreachable_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientStoreError):
        await _client(handler).get_user("token")


def _admin_client(monkeypatch: pytest.MonkeyPatch, handler) -> AuthClient:
    client = _client(handler)
    monkeypatch.setattr(client._settings, "auth_service_role_key", "service-key")
    return client


async def test_find_user_by_email_walks_pages(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("omahub.auth.ADMIN_USERS_PAGE_SIZE", 2)
    pages = {
        "1": [{"id": "u1", "email": "one@example.com"}, {"id": "u2", "email": None}],
        "2": [{"id": "u3", "email": "Three@Example.com"}],
    }
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"users": pages[request.url.params["page"]]})

    client = _admin_client(monkeypatch, handler)

    assert await client.find_user_id_by_email("three@example.com") == "u3"
    assert [request.url.params["page"] for request in seen] == ["1", "2"]
    assert seen[0].url.path == "/auth/v1/admin/users"
    assert seen[0].headers["Authorization"] == "Bearer service-key"


async def test_find_user_by_email_returns_none_when_absent(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"users": []})

    client = _admin_client(monkeypatch, handler)

    assert await client.find_user_id_by_email("ghost@example.com") is None


async def test_find_user_by_email_without_service_key_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = _client(handler)

    with pytest.raises(TransientStoreError):
        await client.find_user_id_by_email("a@example.com")
