"""Database session and repository utilities."""

from omahub.db.session import (
    dispose_engine,
    get_db_session,
    get_engine,
    get_sessionmaker,
    session_context,
)
from omahub.db.repositories import (
    FavouriteInsert,
    delete_favourite,
    delete_favourites_by_ids,
    fetch_brand,
    fetch_catalogue,
    fetch_favourites,
    fetch_orphaned_favourites,
    fetch_platform_settings,
    fetch_product,
    get_favourite,
    insert_favourite,
    upsert_platform_settings,
)

__all__ = [
    "dispose_engine",
    "get_db_session",
    "get_engine",
    "get_sessionmaker",
    "session_context",
    "FavouriteInsert",
    "delete_favourite",
    "delete_favourites_by_ids",
    "fetch_brand",
    "fetch_catalogue",
    "fetch_favourites",
    "fetch_orphaned_favourites",
    "fetch_platform_settings",
    "fetch_product",
    "get_favourite",
    "insert_favourite",
    "upsert_platform_settings",
]
