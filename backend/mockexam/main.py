"""ASGI entry point: `uvicorn mockexam.main:app`."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from mockexam import __version__
from mockexam.api.v1.router import api_router
from mockexam.common.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from mockexam.core.config import settings
from mockexam.core.errors import (
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from mockexam.core.logging import get_logger, setup_logging
from mockexam.core.security_headers import SecurityHeadersMiddleware
from mockexam.core.seed import seed_demo_data
from mockexam.db.init_db import create_schema
from mockexam.db.session import SessionLocal

logger = get_logger(__name__)


def _prepare_database() -> None:
    """Dev and test build their own tables; prod schema is managed outside the app."""
    if settings.ENV not in ("dev", "test"):
        return
    create_schema()
    if settings.SEED_DEMO_DATA and settings.ENV == "dev":
        db = SessionLocal()
        try:
            counts = seed_demo_data(db)
        finally:
            db.close()
        logger.info("Demo data seeded", extra={"event": "seed_demo_data", **counts})


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    _prepare_database()
    logger.info(
        "Application started",
        extra={"event": "startup", "version": __version__, "api_prefix": settings.API_PREFIX},
    )
    yield
    logger.info("Application stopped", extra={"event": "shutdown"})


def create_app() -> FastAPI:
    public_docs = settings.ENV != "prod"
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Exam catalog, timed test papers, scoring, ranking and analytics",
        openapi_url="/openapi.json" if public_docs else None,
        docs_url="/docs" if public_docs else None,
        redoc_url="/redoc" if public_docs else None,
        lifespan=lifespan,
    )

    # Last added runs outermost: CORS, then request id, then security headers
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": settings.PROJECT_NAME,
            "version": __version__,
            "docs_url": "/docs" if public_docs else None,
        }

    return app


app = create_app()
