"""Identity lookups against the hosted auth provider."""

import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, Request

from omahub.config import get_settings
from omahub.errors import AuthenticationRequiredError, TransientStoreError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"
ADMIN_USERS_PAGE_SIZE = 1000


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Identity of the caller as confirmed by the auth provider."""

    id: str
    email: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "email": self.email}


class AuthClient:
    """Resolve bearer access tokens to users via ``GET /auth/v1/user``."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._base_url = self._settings.auth_url.rstrip("/")
        self._timeout = httpx.Timeout(self._settings.auth_request_timeout_seconds)
        self._transport = transport

    async def get_user(self, access_token: str) -> AuthenticatedUser | None:
        """Return the token's user, or ``None`` when the token is rejected."""

        headers = {
            "apikey": self._settings.auth_anon_key,
            "Authorization": f"Bearer {access_token}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self._base_url}/auth/v1/user", headers=headers
                )
        except httpx.HTTPError as e:
            logger.error("Auth provider request failed: %s", e)
            raise TransientStoreError("Authentication service unavailable") from e

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            logger.error("Auth provider returned HTTP %s", response.status_code)
            raise TransientStoreError("Authentication service unavailable")

        payload = response.json()
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            logger.warning("Auth provider response without user id")
            return None
        return AuthenticatedUser(id=str(user_id), email=payload.get("email"))

    async def find_user_id_by_email(self, email: str) -> str | None:
        """Look a user up through the provider's admin listing, page by page."""

        service_key = self._settings.auth_service_role_key
        if not service_key:
            logger.error("auth_service_role_key is not configured")
            raise TransientStoreError("User lookup unavailable")

        headers = {"apikey": service_key, "Authorization": f"Bearer {service_key}"}
        wanted = email.strip().lower()
        page = 1
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                while True:
                    response = await client.get(
                        f"{self._base_url}/auth/v1/admin/users",
                        params={"page": page, "per_page": ADMIN_USERS_PAGE_SIZE},
                        headers=headers,
                    )
                    response.raise_for_status()
                    users = response.json().get("users") or []
                    for user in users:
                        if str(user.get("email") or "").lower() == wanted:
                            return str(user["id"])
                    if len(users) < ADMIN_USERS_PAGE_SIZE:
                        return None
                    page += 1
        except httpx.HTTPError as e:
            logger.error("Auth provider user listing failed: %s", e)
            raise TransientStoreError("User lookup unavailable") from e


def _extract_access_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def get_auth_client() -> AuthClient:
    return AuthClient()


async def get_optional_user(
    request: Request, auth_client: AuthClient = Depends(get_auth_client)
) -> AuthenticatedUser | None:
    """FastAPI dependency yielding the caller, or ``None`` when anonymous."""

    token = _extract_access_token(request)
    if token is None:
        return None
    return await auth_client.get_user(token)


async def get_current_user(
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> AuthenticatedUser:
    """FastAPI dependency that rejects anonymous callers."""

    if user is None:
        raise AuthenticationRequiredError()
    return user
