"""Admin e-mail configuration backed by the platform settings table.

Lookups go through a Redis-held copy with a TTL so authorization checks do not
hit the database on every request. Writes go to the table first and then drop
the cached copy.
"""

import json
import logging
from dataclasses import asdict, dataclass, field

from fastapi import Depends
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from omahub.auth import AuthenticatedUser, get_current_user
from omahub.cache import ADMIN_EMAIL_CONFIG_KEY, cache_delete, cache_get, cache_set
from omahub.config import get_settings
from omahub.db.repositories import fetch_platform_settings, upsert_platform_settings
from omahub.db.session import get_db_session
from omahub.errors import (
    FavouriteValidationError,
    PermissionDeniedError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

ADMIN_EMAIL_KEYS = ("super_admin_emails", "brand_admin_emails", "webhook_admin_emails")


def _normalize_emails(emails: list[object]) -> list[str]:
    normalized: list[str] = []
    for email in emails:
        value = str(email).strip().lower()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


@dataclass(slots=True)
class AdminEmailConfig:
    super_admin_emails: list[str] = field(default_factory=list)
    brand_admin_emails: list[str] = field(default_factory=list)
    webhook_admin_emails: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AdminEmailConfig":
        config = cls()
        for key in ADMIN_EMAIL_KEYS:
            value = data.get(key)
            if isinstance(value, list):
                setattr(config, key, _normalize_emails(value))
        return config


class AdminSettingsService:
    """Cached read/write access to admin e-mail lists."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._settings = get_settings()

    def _fallback_config(self) -> AdminEmailConfig:
        return AdminEmailConfig(
            super_admin_emails=list(self._settings.fallback_super_admin_emails)
        )

    async def _read_cache(self) -> AdminEmailConfig | None:
        try:
            cached = await cache_get(ADMIN_EMAIL_CONFIG_KEY)
        except RedisError as e:
            logger.warning("Admin settings cache read failed: %s", e)
            return None
        if not isinstance(cached, dict):
            return None
        return AdminEmailConfig.from_dict(cached)

    async def _write_cache(self, config: AdminEmailConfig) -> None:
        try:
            await cache_set(
                ADMIN_EMAIL_CONFIG_KEY,
                config.to_dict(),
                self._settings.admin_settings_cache_ttl_seconds,
            )
        except RedisError as e:
            logger.warning("Admin settings cache write failed: %s", e)

    async def get_config(self) -> AdminEmailConfig:
        """Return the admin e-mail configuration, cached for a short TTL."""

        cached = await self._read_cache()
        if cached is not None:
            return cached

        try:
            raw_values = await fetch_platform_settings(
                self._session, list(ADMIN_EMAIL_KEYS)
            )
        except SQLAlchemyError:
            logger.exception("Failed to fetch admin email config, using fallback")
            return self._fallback_config()

        parsed: dict[str, object] = {}
        for key, raw_value in raw_values.items():
            try:
                value = json.loads(raw_value)
            except (json.JSONDecodeError, TypeError):
                logger.error("Ignoring unparsable platform setting %s", key)
                continue
            if not isinstance(value, list):
                logger.error("Ignoring non-list platform setting %s", key)
                continue
            parsed[key] = value

        config = AdminEmailConfig.from_dict(parsed)
        await self._write_cache(config)
        return config

    async def is_super_admin(self, email: str | None) -> bool:
        if not email:
            return False
        config = await self.get_config()
        return email.strip().lower() in config.super_admin_emails

    async def is_brand_admin(self, email: str | None) -> bool:
        if not email:
            return False
        config = await self.get_config()
        return email.strip().lower() in config.brand_admin_emails

    async def update_config(
        self, changes: dict[str, list[str]], *, actor_email: str | None
    ) -> AdminEmailConfig:
        """Persist changed lists and invalidate the cached copy."""

        if not await self.is_super_admin(actor_email):
            raise PermissionDeniedError(
                "Only super admins can update admin email configuration"
            )

        unknown_keys = sorted(set(changes) - set(ADMIN_EMAIL_KEYS))
        if unknown_keys:
            raise FavouriteValidationError(
                f"Unknown admin email settings: {', '.join(unknown_keys)}"
            )

        values = {
            key: json.dumps(_normalize_emails(list(emails)))
            for key, emails in changes.items()
        }
        try:
            await upsert_platform_settings(self._session, values)
        except SQLAlchemyError as e:
            logger.exception("Failed to update admin email config")
            raise TransientStoreError("Failed to update admin settings") from e

        try:
            await cache_delete(ADMIN_EMAIL_CONFIG_KEY)
        except RedisError as e:
            logger.error("Admin settings cache invalidation failed: %s", e)

        logger.info("Admin email config updated by %s: %s", actor_email, sorted(values))
        return await self.get_config()


async def require_super_admin(
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AuthenticatedUser:
    """FastAPI dependency admitting only super admins."""

    if not await AdminSettingsService(session).is_super_admin(user.email):
        raise PermissionDeniedError()
    return user
