"""HTTP API routers."""

from omahub.api.admin import router as admin_router
from omahub.api.favourites import router as favourites_router

__all__ = ["admin_router", "favourites_router"]
