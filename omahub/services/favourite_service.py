"""Business logic for user favourite management."""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from omahub.auth import AuthenticatedUser
from omahub.config import get_settings
from omahub.db.repositories import (
    FavouriteInsert,
    delete_favourite,
    fetch_favourites,
    get_favourite,
    insert_favourite,
)
from omahub.errors import (
    AuthenticationRequiredError,
    FavouriteValidationError,
    TransientStoreError,
)
from omahub.models.favourite import Favourite
from omahub.services.enrichment import RESOLVERS, EnrichedItem

logger = logging.getLogger(__name__)

MAX_ITEM_ID_LENGTH = Favourite.__table__.c.item_id.type.length


class AddOutcome(str, Enum):
    ADDED = "added"
    ALREADY_EXISTS = "already_exists"


@dataclass(slots=True)
class AddResult:
    outcome: AddOutcome
    favourite: dict[str, object]


@dataclass(slots=True)
class RemoveResult:
    removed: bool

    @property
    def status(self) -> str:
        return "removed" if self.removed else "not_found"


def favourite_to_dict(favourite: Favourite) -> dict[str, object]:
    return {
        "id": favourite.id,
        "user_id": favourite.user_id,
        "item_id": favourite.item_id,
        "item_type": favourite.item_type,
        "created_at": favourite.created_at.isoformat()
        if favourite.created_at
        else None,
    }


class FavouriteService:
    """Server-of-record for favourites, scoped to the authenticated caller."""

    _session: AsyncSession

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._item_types = tuple(get_settings().favourite_item_types)

    def _require_user(self, user: AuthenticatedUser | None) -> AuthenticatedUser:
        if user is None:
            raise AuthenticationRequiredError()
        return user

    def _validate_item(self, item_id: object, item_type: object) -> tuple[str, str]:
        if not isinstance(item_id, str) or not item_id.strip():
            raise FavouriteValidationError("Item ID and type are required")
        if not isinstance(item_type, str) or not item_type.strip():
            raise FavouriteValidationError("Item ID and type are required")
        if item_type not in self._item_types:
            raise FavouriteValidationError(
                f"Invalid item type: {item_type}. "
                f"Valid values are: {', '.join(self._item_types)}"
            )
        item_id = item_id.strip()
        if len(item_id) > MAX_ITEM_ID_LENGTH:
            raise FavouriteValidationError(
                f"Item ID must be at most {MAX_ITEM_ID_LENGTH} characters"
            )
        return item_id, item_type

    async def list_favourites(
        self, user: AuthenticatedUser | None
    ) -> list[EnrichedItem]:
        """List the caller's favourites, newest first, with display fields."""

        user = self._require_user(user)
        return await self.list_favourites_for_user_id(user.id)

    async def list_favourites_for_user_id(self, user_id: str) -> list[EnrichedItem]:
        """List one user's enriched favourites.

        Only for callers that have already established authority over
        ``user_id`` (the caller's own id, or an administrator).
        """

        try:
            favourites = await fetch_favourites(self._session, user_id=user_id)
        except SQLAlchemyError as e:
            logger.exception("Failed to fetch favourites for user_id=%s", user_id)
            raise TransientStoreError("Failed to fetch favourites") from e

        # Detach so a per-item rollback below cannot expire the remaining rows.
        for favourite in favourites:
            self._session.expunge(favourite)

        result: list[EnrichedItem] = []
        for favourite in favourites:
            item = await self._enrich(favourite)
            if item is not None:
                result.append(item)
        return result

    async def _enrich(self, favourite: Favourite) -> EnrichedItem | None:
        resolver = RESOLVERS.get(favourite.item_type)
        if resolver is None:
            logger.warning(
                "Dropping favourite_id=%s with unknown item_type=%s",
                favourite.id,
                favourite.item_type,
            )
            return None

        try:
            item = await resolver(self._session, favourite)
        except SQLAlchemyError:
            logger.exception(
                "Enrichment query failed for favourite_id=%s item_type=%s item_id=%s",
                favourite.id,
                favourite.item_type,
                favourite.item_id,
            )
            await self._session.rollback()
            return None
        except Exception:
            logger.exception(
                "Enrichment failed for favourite_id=%s item_type=%s item_id=%s",
                favourite.id,
                favourite.item_type,
                favourite.item_id,
            )
            return None

        if item is None:
            logger.info(
                "Dropping orphaned favourite_id=%s: %s %s no longer exists",
                favourite.id,
                favourite.item_type,
                favourite.item_id,
            )
        return item

    async def add_favourite(
        self, user: AuthenticatedUser | None, item_id: object, item_type: object
    ) -> AddResult:
        """Add an item to the caller's favourites.

        A second add of the same item is reported as
        :attr:`AddOutcome.ALREADY_EXISTS` rather than raised.
        """

        user = self._require_user(user)
        item_id, item_type = self._validate_item(item_id, item_type)

        try:
            inserted = await insert_favourite(
                self._session,
                FavouriteInsert(user_id=user.id, item_id=item_id, item_type=item_type),
            )
            if inserted is not None:
                logger.info(
                    "Favourite added user_id=%s %s %s", user.id, item_type, item_id
                )
                return AddResult(
                    outcome=AddOutcome.ADDED, favourite=favourite_to_dict(inserted)
                )

            existing = await get_favourite(
                self._session, user_id=user.id, item_id=item_id, item_type=item_type
            )
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to add favourite user_id=%s %s %s", user.id, item_type, item_id
            )
            raise TransientStoreError("Failed to add to favourites") from e

        if existing is None:
            # removed again between the conflicting insert and this read
            raise TransientStoreError("Failed to add to favourites")

        return AddResult(
            outcome=AddOutcome.ALREADY_EXISTS, favourite=favourite_to_dict(existing)
        )

    async def remove_favourite(
        self, user: AuthenticatedUser | None, item_id: object, item_type: object
    ) -> RemoveResult:
        """Remove an item from the caller's favourites; succeeds if absent."""

        user = self._require_user(user)
        item_id, item_type = self._validate_item(item_id, item_type)

        try:
            removed = await delete_favourite(
                self._session, user_id=user.id, item_id=item_id, item_type=item_type
            )
        except SQLAlchemyError as e:
            logger.exception(
                "Failed to remove favourite user_id=%s %s %s",
                user.id,
                item_type,
                item_id,
            )
            raise TransientStoreError("Failed to remove from favourites") from e

        if removed:
            logger.info(
                "Favourite removed user_id=%s %s %s", user.id, item_type, item_id
            )
        return RemoveResult(removed=removed)
