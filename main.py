from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from supabase import Client

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.logging_config import logger
from core.payment_providers import build_payment_provider
from core.storage import ObjectStorage, build_storage
from core.supabase_client import close_supabase_client, create_supabase_client

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.auth import router as auth_router
from routers.session import router as session_router
from routers.profiles import router as profiles_router
from routers.document_types import router as document_types_router
from routers.requests import router as requests_router
from routers.attachments import router as attachments_router
from routers.admin import router as admin_router
from routers.analytics import router as analytics_router
from routers.payments import router as payments_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app(
    supabase_client: Optional[Client] = None,
    storage: Optional[ObjectStorage] = None,
    payment_provider=None,
) -> FastAPI:
    """
    The Supabase client, storage backend and payment provider are built once
    at start-up (or passed in) and live on ``app.state`` until shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        validate_config_on_startup(settings)

        client = supabase_client if supabase_client is not None else create_supabase_client(settings)
        app.state.supabase = client
        app.state.storage = storage if storage is not None else build_storage(settings, client)
        app.state.payment_provider = payment_provider or build_payment_provider(settings)

        logger.info(
            f"Starting {settings.PROJECT_NAME} (env={settings.ENV}, "
            f"storage={settings.STORAGE_BACKEND}, payments={app.state.payment_provider.name})"
        )
        for route in app.routes:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.debug(f"route {methods:10s} {getattr(route, 'path', '')}")

        try:
            yield
        finally:
            # Only dispose what this app constructed
            if supabase_client is None:
                close_supabase_client(client)
            app.state.supabase = None
            app.state.storage = None
            logger.info(f"Stopped {settings.PROJECT_NAME}")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Barangay document requests: residents request, pay and track; staff review and fulfil.",
        lifespan=lifespan,
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url.path} - {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Auth + session gate
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(profiles_router)

    # Catalog + requests
    app.include_router(document_types_router)
    app.include_router(requests_router)
    app.include_router(attachments_router)

    # Staff
    app.include_router(admin_router)
    app.include_router(analytics_router)

    # Payment functions
    app.include_router(payments_router)

    # Health
    app.include_router(health_router)

    # -------------------------------------------------
    # Root Redirect (frontend)
    # -------------------------------------------------
    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse(settings.SITE_URL)

    return app


# Create the global FastAPI instance
app = create_app()
