"""Application configuration."""

from omahub.config.settings import VALID_ITEM_TYPES, Settings, get_settings

__all__ = ["VALID_ITEM_TYPES", "Settings", "get_settings"]
