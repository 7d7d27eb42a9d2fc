"""Studio admin endpoints."""

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from omahub.auth import AuthClient, AuthenticatedUser, get_auth_client
from omahub.db.session import get_db_session
from omahub.errors import FavouriteValidationError, UserNotFoundError
from omahub.services.admin_settings import AdminSettingsService, require_super_admin
from omahub.services.favourite_service import FavouriteService

router = APIRouter(prefix="/api/admin", tags=["admin"])


class AdminEmailConfigUpdate(BaseModel):
    super_admin_emails: list[str] | None = None
    brand_admin_emails: list[str] | None = None
    webhook_admin_emails: list[str] | None = None


@router.get("/user-favourites")
async def user_favourites(
    user_id: str | None = None,
    email: str | None = None,
    admin: AuthenticatedUser = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
    auth_client: AuthClient = Depends(get_auth_client),
) -> dict[str, object]:
    """Return another user's enriched favourites for support staff.

    The user is addressed by ``user_id`` or, failing that, by ``email``
    through the auth provider's admin user listing.
    """

    _ = admin
    target_id = (user_id or "").strip()
    target_email = (email or "").strip()
    if not target_id and not target_email:
        raise FavouriteValidationError("user_id or email parameter is required")

    if not target_id:
        found = await auth_client.find_user_id_by_email(target_email)
        if found is None:
            raise UserNotFoundError(f"No user with email {target_email}")
        target_id = found

    favourites = await FavouriteService(session).list_favourites_for_user_id(
        target_id
    )
    return {
        "user_id": target_id,
        "count": len(favourites),
        "favourites": favourites,
    }


@router.get("/settings/admin-emails")
async def get_admin_emails(
    admin: AuthenticatedUser = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, list[str]]:
    _ = admin
    config = await AdminSettingsService(session).get_config()
    return config.to_dict()


@router.put("/settings/admin-emails")
async def update_admin_emails(
    payload: AdminEmailConfigUpdate = Body(...),
    admin: AuthenticatedUser = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
) -> dict[str, list[str]]:
    """Overwrite the supplied admin e-mail lists."""

    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise FavouriteValidationError("No admin email settings supplied")

    config = await AdminSettingsService(session).update_config(
        changes, actor_email=admin.email
    )
    return config.to_dict()
