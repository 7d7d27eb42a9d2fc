"""Service layer."""

from omahub.services.admin_settings import AdminSettingsService
from omahub.services.favourite_service import FavouriteService

__all__ = ["AdminSettingsService", "FavouriteService"]
