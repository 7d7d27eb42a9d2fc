"""Error taxonomy shared by the favourites store and its HTTP surface.

Every failure that leaves the service layer is one of these exceptions. Raw
driver or SQLAlchemy errors are translated into :class:`TransientStoreError`
before they cross the boundary, so callers only ever branch on the categories
below. A duplicate add is deliberately absent: it is a successful
``already_exists`` outcome, not an error.
"""

from __future__ import annotations


class FavouritesError(Exception):
    """Base class for failures surfaced to API callers."""

    error_type = "internal_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequiredError(FavouritesError):
    error_type = "authentication_error"
    status_code = 401
    default_message = "Authentication required"


class PermissionDeniedError(FavouritesError):
    error_type = "authorization_error"
    status_code = 403
    default_message = "Insufficient permissions"


class FavouriteValidationError(FavouritesError):
    error_type = "validation_error"
    status_code = 400
    default_message = "Item ID and type are required"


class TransientStoreError(FavouritesError):
    """Backing store or identity provider is unavailable; safe to retry."""

    error_type = "transient_error"
    status_code = 503
    default_message = "Service temporarily unavailable, please retry"
    retry_after_seconds = 5


class UserNotFoundError(FavouritesError):
    error_type = "not_found_error"
    status_code = 404
    default_message = "User not found"
