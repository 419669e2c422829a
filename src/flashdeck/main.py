"""
# Flashdeck API

FastAPI application exposing the workspace store, the generation pipeline and the quota status.

## Lifecycle

`lifespan()` connects to MongoDB and ensures the workspace indexes on startup, and disconnects on
shutdown. A card provider can be attached before startup through `app.state.card_provider`; without
one, generation requests answer 503.

## Errors

Every `FlashdeckError` is rendered as `{"error": <code>, "message": <text>}` with the error's HTTP
status (`resets_at` is added for quota refusals, `Retry-After` for transient failures).
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flashdeck.config import settings
from flashdeck.database import db_manager
from flashdeck.errors import FlashdeckError
from flashdeck.managers.logging_manager import get_logger, log_application_lifecycle
from flashdeck.routes import generation_router, guest_router, workspace_router

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    **Startup:** connect to MongoDB, then create/verify indexes.
    **Shutdown:** disconnect from MongoDB.
    """
    startup_start_time = time.time()
    log_application_lifecycle("startup_initiated", {"app_name": "Flashdeck API", "debug_mode": settings.DEBUG})

    await db_manager.connect()
    await db_manager.create_indexes()
    log_application_lifecycle(
        "database_ready",
        {
            "database_name": settings.MONGODB_DATABASE,
            "startup_duration": f"{time.time() - startup_start_time:.3f}s",
        },
    )

    try:
        yield
    finally:
        await db_manager.disconnect()
        log_application_lifecycle("shutdown_completed")


async def flashdeck_error_handler(request: Request, exc: FlashdeckError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)

    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the application. Tests pass `use_lifespan=False` to skip the MongoDB connection."""
    application = FastAPI(
        title="Flashdeck API",
        description="Folder/deck workspace, generation quota and study support for flashcards.",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
        redirect_slashes=False,
    )
    application.add_exception_handler(FlashdeckError, flashdeck_error_handler)
    application.include_router(workspace_router)
    application.include_router(generation_router)
    application.include_router(guest_router)

    @application.get("/health", tags=["Health"])
    async def health():
        healthy = await db_manager.health_check()
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "healthy" if healthy else "unhealthy"},
        )

    return application


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("flashdeck.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)


if __name__ == "__main__":
    run()
