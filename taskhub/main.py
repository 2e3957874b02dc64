"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from taskhub.api.v1 import auth, comments, projects, tasks, users
from taskhub.config import settings
from taskhub.database import close_db, engine, init_db
from taskhub.core.exceptions import LocalizedHTTPException
from taskhub.localization.helpers import get_translation, resolve_locale
from taskhub.middleware.metrics import setup_metrics
from taskhub.middleware.security_headers import setup_security_headers
from taskhub.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")
    yield
    # Shutdown
    await close_db()


async def localized_error_handler(request: Request, exc: LocalizedHTTPException) -> JSONResponse:
    """Render a domain error in the language asked for by Accept-Language."""
    locale = resolve_locale(request.headers.get("accept-language"))
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.localized_detail(locale)},
        headers=exc.headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log anything that escaped the HTTP error taxonomy and answer 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    locale = resolve_locale(request.headers.get("accept-language"))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": get_translation("errors.internal", locale)},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_metrics(app)
    setup_security_headers(app)
    app.add_exception_handler(LocalizedHTTPException, localized_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include routers
    app.include_router(auth.router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["auth"])
    app.include_router(users.router, prefix=f"{settings.API_V1_PREFIX}/users", tags=["users"])
    app.include_router(
        projects.router, prefix=f"{settings.API_V1_PREFIX}/projects", tags=["projects"]
    )
    app.include_router(tasks.router, prefix=f"{settings.API_V1_PREFIX}/tasks", tags=["tasks"])
    app.include_router(
        comments.router, prefix=f"{settings.API_V1_PREFIX}/tasks", tags=["comments"]
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        health_status = {"status": "ok", "checks": {"database": "unknown"}}
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["checks"]["database"] = "ok"
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            health_status["checks"]["database"] = f"error: {str(e)}"
            health_status["status"] = "degraded"
        return health_status

    return app


app = create_app()
