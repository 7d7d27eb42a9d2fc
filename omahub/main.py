"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from omahub.api import admin_router, favourites_router
from omahub.config import get_settings
from omahub.db.session import dispose_engine
from omahub.errors import FavouritesError, TransientStoreError
from omahub.taskiq_app.broker import broker

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Start the task broker for the API process and release DB connections."""

    if not broker.is_worker_process:
        await broker.startup()
    yield
    if not broker.is_worker_process:
        await broker.shutdown()
    await dispose_engine()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(favourites_router)
app.include_router(admin_router)


def _error_body(error_type: str, message: str) -> dict[str, object]:
    return {"error": {"type": error_type, "message": message}}


@app.exception_handler(FavouritesError)
async def favourites_error_handler(
    request: Request, exc: FavouritesError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.error_type,
            exc.message,
        )

    headers = None
    if isinstance(exc, TransientStoreError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_type, exc.message),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = [".".join(str(loc) for loc in error["loc"]) for error in exc.errors()]
    logger.info(
        "%s %s invalid request: %s", request.method, request.url.path, fields
    )
    content = _error_body("validation_error", "Invalid request")
    content["error"]["fields"] = fields
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


@app.get("/health")
async def health() -> dict[str, str]:
    """Basic health endpoint."""

    return {"status": "ok"}
