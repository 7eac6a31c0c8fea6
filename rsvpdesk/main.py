"""
FastAPI Application Entry Point
Application factory, startup wiring and route registration
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rsvpdesk import __version__
from rsvpdesk.config import Settings, get_settings, validate_settings
from rsvpdesk.database import create_sync_engine
from rsvpdesk.logging_config import setup_logging
from rsvpdesk.services.email_service import build_notifier
from rsvpdesk.services.schema_service import SchemaManager
from rsvpdesk.store import create_record_store

logger = logging.getLogger(__name__)


def validation_message(exc: RequestValidationError) -> str:
    """First validation problem, phrased for the person filling in the form"""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")

    if error.get("type") == "value_error" and error.get("ctx", {}).get("error"):
        return str(error["ctx"]["error"])
    if error.get("type") == "missing":
        return f"{field} is required" if field else "Request body is required"
    if error.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    return f"{field}: {error.get('msg')}" if field else str(error.get("msg"))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": validation_message(exc)},
    )


def create_app(settings: Optional[Settings] = None, configure_logging: bool = True) -> FastAPI:
    """
    Build the application

    Nothing touches the database until startup; the store, its connection
    and the notifier are created there and kept on app.state.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Event RSVP collection and administration",
        version=__version__,
        debug=settings.DEBUG
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.on_event("startup")
    async def startup():
        """Validate config, migrate, connect"""
        if configure_logging:
            setup_logging(settings.LOG_LEVEL)

        validate_settings(settings)

        store = create_record_store(settings.DATABASE_URL)

        engine = create_sync_engine(settings.DATABASE_URL)
        try:
            added = SchemaManager(engine).ensure_schema()
        finally:
            engine.dispose()
        if added:
            logger.info("Schema migrated, added columns: %s", ", ".join(added))

        await store.connect()
        app.state.store = store
        app.state.notifier = build_notifier(settings)
        logger.info("%s started in %s mode (%s engine)", settings.APP_NAME, settings.APP_ENV, store.engine)

    @app.on_event("shutdown")
    async def shutdown():
        notifier = getattr(app.state, "notifier", None)
        if notifier is not None:
            await notifier.drain()

        store = getattr(app.state, "store", None)
        if store is not None:
            await store.disconnect()

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        store = getattr(app.state, "store", None)
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": __version__,
            "engine": store.engine if store else None,
        }

    from rsvpdesk.routes import admin, public

    app.include_router(public.router, prefix="/api", tags=["Public"])
    app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "rsvpdesk.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True
    )
