"""FastAPI entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gradebook.api.v2 import router as api_router
from gradebook.config import get_settings
from gradebook.db import Base, engine
from gradebook.errors import GradebookError, TransientFailure
from gradebook import models  # noqa: F401  registers tables on Base.metadata

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying after a store outage
RETRY_AFTER_SECONDS = 30


def error_response(exc: GradebookError) -> JSONResponse:
    """JSON body for a domain error.

    Store outages carry ``"banner": "connectivity"`` so clients keep showing a
    connection problem instead of treating it like a rejected request.
    """

    content = {"error": exc.code, "detail": exc.message}
    headers = None
    if isinstance(exc, TransientFailure):
        content["banner"] = "connectivity"
        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


def init_models() -> None:
    """Create missing tables."""

    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_models()
    yield


def create_app() -> FastAPI:
    """Application factory."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Gradebook API", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(GradebookError)
    async def handle_gradebook_error(request: Request, exc: GradebookError) -> JSONResponse:
        return error_response(exc)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router)
    return app


app = create_app()
