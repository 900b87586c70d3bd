import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.middleware import SlowAPIMiddleware

from agency_admin.api.api import api_router
from agency_admin.core.config import get_settings
from agency_admin.core.database import Database
from agency_admin.core.errors import register_exception_handlers
from agency_admin.core.log_config import configure_logging
from agency_admin.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from agency_admin.core.rate_limit import limiter

logger = logging.getLogger(__name__)


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API. A ``database`` passed in is used as-is and left open on shutdown."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.SQLALCHEMY_DATABASE_URI)
        db.create_all()
        app.state.database = db
        logger.info("Database ready", extra={"environment": settings.ENVIRONMENT})
        try:
            yield
        finally:
            if database is None:
                db.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        docs_url="/docs" if settings.ENABLE_API_DOCS else None,
        redoc_url="/redoc" if settings.ENABLE_API_DOCS else None,
        openapi_url="/openapi.json" if settings.ENABLE_API_DOCS else None,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    register_exception_handlers(app)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "PATCH", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "x-request-id"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
