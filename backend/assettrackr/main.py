"""FastAPI application entry point and lifespan management.

Configures CORS, registers API routers and error handlers, and manages the
application lifespan (logging, database tables, demo seed, orphaned job
cleanup, upload pipeline). Serves as the single top-level module that
wires together all sub-packages.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from assettrackr.api.router import router as api_router
from assettrackr.config import get_settings
from assettrackr.database import SessionLocal, create_tables
from assettrackr.exceptions import AssetTrackerError
from assettrackr.schemas.common import HealthResponse
from assettrackr.services.scheduler import AsyncioScheduler
from assettrackr.services.upload_service import UploadPipeline

logger = logging.getLogger(__name__)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Suppress noisy third-party HTTP loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Runs on startup: logging, DB tables, pipeline, orphan cleanup, seed."""
    settings = get_settings()
    _setup_logging(settings.LOG_LEVEL)

    # Ensure DB directory exists
    if settings.DATABASE_URL.startswith("sqlite:///"):
        db_path = settings.DATABASE_URL.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    create_tables()
    logger.info("Database tables ready")

    if getattr(app.state, "upload_pipeline", None) is None:
        app.state.upload_pipeline = UploadPipeline(
            SessionLocal, AsyncioScheduler(), settings.upload_stage_delays,
        )

    # Fail jobs interrupted by an unclean shutdown, then seed and resume
    from assettrackr.utils.startup import prepare_jobs
    prepare_jobs(SessionLocal, app.state.upload_pipeline, seed=settings.SEED_DEMO_DATA)

    yield  # Application runs here

    logger.info("Shutting down")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error": message}``."""

    @app.exception_handler(AssetTrackerError)
    async def domain_error_handler(request: Request, exc: AssetTrackerError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _format_validation_error(exc)})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Health check
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(
            status="healthy",
            version=settings.APP_VERSION,
            timestamp=datetime.now(timezone.utc),
        )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()
