import os
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup, validate_required_config
from core.logging_config import logger
from core.access_control import get_access_control
from core.errors import DuplicateRoleError, NotFoundError, StoreWriteError

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.pages import router as pages_router
from routers.roles import router as roles_router
from routers.permissions import router as permissions_router
from routers.me import router as me_router
from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Role-based page permissions backed by Supabase",
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
    # Startup: config check + self-healing pass
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info("🚀 Starting Page Access API")

        if settings.ENV == "production":
            validate_config_on_startup()
        elif validate_required_config():
            logger.warning("Supabase is not configured; store calls will fail")

        try:
            get_access_control().reconcile()
        except Exception as e:
            logger.error(f"Startup reconciliation failed: {e}")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(DuplicateRoleError)
    async def handle_duplicate_role(request: Request, exc: DuplicateRoleError):
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(StoreWriteError)
    async def handle_store_write(request: Request, exc: StoreWriteError):
        logger.warning(f"Store write failed at {request.url}: {exc.message}")
        return JSONResponse(
            status_code=503,
            content={"detail": "Change could not be saved, please retry"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Administration
    app.include_router(pages_router)
    app.include_router(roles_router)
    app.include_router(permissions_router)

    # Navigation + route guards
    app.include_router(me_router)

    # Health
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
