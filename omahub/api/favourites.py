"""Favourites API consumed by the client cache."""

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from omahub.auth import AuthenticatedUser, get_current_user
from omahub.db.session import get_db_session
from omahub.services.favourite_service import AddOutcome, FavouriteService

router = APIRouter(prefix="/api/favourites", tags=["favourites"])


class FavouriteCreate(BaseModel):
    """Body of an add request; camelCase keys from older clients are accepted."""

    item_id: str = Field(validation_alias=AliasChoices("item_id", "itemId"))
    item_type: str = Field(validation_alias=AliasChoices("item_type", "itemType"))


@router.get("")
async def list_favourites(
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, object]:
    """Return the caller's enriched favourites, newest first."""

    favourites = await FavouriteService(session).list_favourites(user)
    return {"favourites": favourites, "user": user.to_dict()}


@router.post("")
async def add_favourite(
    payload: FavouriteCreate = Body(...),
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> JSONResponse:
    """Add a favourite; a duplicate is a 200 with ``status=already_exists``."""

    result = await FavouriteService(session).add_favourite(
        user, payload.item_id, payload.item_type
    )
    if result.outcome is AddOutcome.ADDED:
        status_code = status.HTTP_201_CREATED
        message = "Added to favourites"
    else:
        status_code = status.HTTP_200_OK
        message = "Item already in favourites"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": result.outcome.value,
            "message": message,
            "favourite": result.favourite,
            "user": user.to_dict(),
        },
    )


@router.delete("")
async def remove_favourite(
    item_id: str | None = None,
    item_type: str | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, object]:
    """Remove a favourite; removing something never added still succeeds."""

    result = await FavouriteService(session).remove_favourite(user, item_id, item_type)
    return {
        "status": result.status,
        "message": "Removed from favourites",
        "user": user.to_dict(),
    }
