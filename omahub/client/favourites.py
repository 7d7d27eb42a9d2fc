"""Session-scoped mirror of the caller's favourites.

The cache never edits its contents locally. Every add or remove is sent to the
favourites API and, once the API has answered, the whole list is fetched
again. Membership therefore only flips after the server confirms, and a failed
write can never leave a local change behind.

Responses are tagged with the generation (bumped on every user change or
sign-out) and the refresh sequence number that requested them; anything older
than the current values is dropped on arrival.
"""

import logging
from collections.abc import Callable
from enum import Enum

import httpx

logger = logging.getLogger(__name__)

NoticeCallback = Callable[[str, str], None]


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class Notice(str, Enum):
    ADDED = "added"
    ALREADY_EXISTS = "already_exists"
    REMOVED = "removed"
    ERROR = "error"
    SIGN_IN_REQUIRED = "sign_in_required"


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return default


class FavouritesCache:
    """Client-side favourites state for one signed-in session."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        notify: NoticeCallback | None = None,
        endpoint: str = "/api/favourites",
    ) -> None:
        self._http = http
        self._notify = notify
        self._endpoint = endpoint
        self._user_id: str | None = None
        self._access_token: str | None = None
        self._generation = 0
        self._refresh_seq = 0
        self._favourites: tuple[dict[str, object], ...] = ()
        self._state = CacheState.UNINITIALIZED
        self._error: str | None = None

    @property
    def favourites(self) -> tuple[dict[str, object], ...]:
        return self._favourites

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state is CacheState.LOADING

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def _emit(self, notice: Notice, message: str) -> None:
        if self._notify is not None:
            self._notify(notice.value, message)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def _is_current(self, generation: int, seq: int | None = None) -> bool:
        if generation != self._generation:
            return False
        return seq is None or seq == self._refresh_seq

    async def bind_user(self, user_id: str, access_token: str) -> bool:
        """Attach the cache to a user, discarding anything held for the last one."""

        if user_id != self._user_id:
            self._generation += 1
            self._favourites = ()
            self._error = None
        self._user_id = user_id
        self._access_token = access_token
        return await self.refresh()

    def sign_out(self) -> None:
        self._generation += 1
        self._user_id = None
        self._access_token = None
        self._favourites = ()
        self._error = None
        self._state = CacheState.UNINITIALIZED

    async def refresh(self) -> bool:
        """Re-read the full list; keeps the last good snapshot on failure."""

        if self._user_id is None:
            return False

        generation = self._generation
        self._refresh_seq += 1
        seq = self._refresh_seq
        self._state = CacheState.LOADING

        try:
            response = await self._http.get(self._endpoint, headers=self._headers())
            response.raise_for_status()
            items = response.json().get("favourites", [])
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            if not self._is_current(generation, seq):
                return False
            logger.warning(
                "Failed to load favourites for user_id=%s: %s", self._user_id, e
            )
            self._state = CacheState.ERROR
            self._error = "Failed to load favourites"
            self._emit(Notice.ERROR, self._error)
            return False

        if not self._is_current(generation, seq):
            logger.debug("Discarding superseded favourites response")
            return False

        self._favourites = tuple(item for item in items if isinstance(item, dict))
        self._state = CacheState.READY
        self._error = None
        return True

    def is_favourite(self, item_id: str, item_type: str) -> bool:
        return any(
            item.get("id") == item_id and item.get("item_type") == item_type
            for item in self._favourites
        )

    async def _refresh_if_current(self, generation: int) -> None:
        # a newer bind or sign-out has already reset the cache
        if self._is_current(generation):
            await self.refresh()

    async def add_favourite(self, item_id: str, item_type: str) -> bool:
        if self._user_id is None:
            self._emit(Notice.SIGN_IN_REQUIRED, "Please sign in to add favourites")
            return False

        generation = self._generation
        try:
            response = await self._http.post(
                self._endpoint,
                json={"item_id": item_id, "item_type": item_type},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("Add favourite %s %s failed: %s", item_type, item_id, e)
            if not self._is_current(generation):
                return False
            self._emit(Notice.ERROR, "Failed to add to favourites")
            await self._refresh_if_current(generation)
            return False

        if not self._is_current(generation):
            logger.info("Dropping add result for a signed-out or switched user")
            return False

        if response.status_code not in (200, 201):
            message = _error_message(response, "Failed to add to favourites")
            logger.warning(
                "Add favourite %s %s rejected with HTTP %s",
                item_type,
                item_id,
                response.status_code,
            )
            self._emit(Notice.ERROR, message)
            await self._refresh_if_current(generation)
            return False

        try:
            status = response.json().get("status")
        except (ValueError, AttributeError):
            status = None
        if status == Notice.ALREADY_EXISTS.value:
            self._emit(Notice.ALREADY_EXISTS, "Already in favourites")
        else:
            self._emit(Notice.ADDED, "Added to favourites")

        await self._refresh_if_current(generation)
        return True

    async def remove_favourite(self, item_id: str, item_type: str) -> bool:
        if self._user_id is None:
            self._emit(Notice.SIGN_IN_REQUIRED, "Please sign in to manage favourites")
            return False

        generation = self._generation
        try:
            response = await self._http.delete(
                self._endpoint,
                params={"item_id": item_id, "item_type": item_type},
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("Remove favourite %s %s failed: %s", item_type, item_id, e)
            if not self._is_current(generation):
                return False
            self._emit(Notice.ERROR, "Failed to remove from favourites")
            await self._refresh_if_current(generation)
            return False

        if not self._is_current(generation):
            logger.info("Dropping remove result for a signed-out or switched user")
            return False

        if response.status_code != 200:
            message = _error_message(response, "Failed to remove from favourites")
            logger.warning(
                "Remove favourite %s %s rejected with HTTP %s",
                item_type,
                item_id,
                response.status_code,
            )
            self._emit(Notice.ERROR, message)
            await self._refresh_if_current(generation)
            return False

        self._emit(Notice.REMOVED, "Removed from favourites")
        await self._refresh_if_current(generation)
        return True

    async def toggle_favourite(self, item_id: str, item_type: str) -> bool:
        """Flip membership on the server; the local view follows the refresh."""

        if self.is_favourite(item_id, item_type):
            return await self.remove_favourite(item_id, item_type)
        return await self.add_favourite(item_id, item_type)
