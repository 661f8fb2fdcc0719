"""
FastAPI application for EditOrchestra.

Exposes the editor orchestration loop to a browser editor over HTTP.

Usage:
    # Development server with auto-reload
    uvicorn edit_orchestrator.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn edit_orchestrator.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config_loader import load_app_config
from ..models import AppConfig
from ..orchestration import EDITOR_TOOL_SPECS
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import edit, health
from .sessions import SessionStore

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the server process."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("edit_orchestrator").setLevel(log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    app_config: AppConfig = app.state.config
    logger.info("Starting EditOrchestra API server")

    logger.info("=" * 60)
    logger.info("COMPLETION ENDPOINT")
    logger.info(f"  Base URL: {app_config.orchestrator.base_url}")
    logger.info(f"  Model: {app_config.orchestrator.model}")
    if app_config.orchestrator.is_azure:
        logger.info(f"  Azure API version: {app_config.orchestrator.api_version}")
    logger.info(f"  Temperature: {app_config.orchestrator.temperature}")
    logger.info(f"  Max rounds: {app_config.orchestrator.max_rounds}")
    logger.info(f"  Round timeout: {app_config.orchestrator.round_timeout}s")
    retry = app_config.retry
    logger.info(
        f"  Retry: {retry.max_attempts} attempts, "
        f"backoff {retry.backoff_min}-{retry.backoff_max}s"
    )

    logger.info("-" * 60)
    logger.info("EDITOR TOOLS")
    for spec in EDITOR_TOOL_SPECS:
        logger.info(f"  - {spec.name}: {spec.description[:60]}...")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(app_config.langfuse, release=__version__)
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {app_config.langfuse.host}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("=" * 60)

    yield

    logger.info("Shutting down EditOrchestra API server")
    app.state.sessions.clear()
    client = getattr(app.state, "completion_client", None)
    if client is not None:
        await client.close()
    shutdown_tracing()
    logger.info("Tracing client shutdown complete")


def create_app(app_config: Optional[AppConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_config: Configuration to serve with; loaded from
            config/config.yaml and the environment when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    app_config = app_config or load_app_config()

    app = FastAPI(
        title="EditOrchestra API",
        description=(
            "Natural-language editing for a rich-text editor. A language model "
            "translates each request into editor tool calls."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.config = app_config
    app.state.sessions = SessionStore(max_sessions=app_config.server.max_sessions)

    # The browser editor is served from a different origin during development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(edit.router, tags=["Edit"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the non-serializable ``ctx`` payloads."""
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


_config = load_app_config()
configure_logging(_config.log_level)

# Create the application instance
app = create_app(_config)


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "edit_orchestrator.api.main:app",
        host=_config.server.host,
        port=_config.server.port,
        reload=_config.server.reload,
        workers=1 if _config.server.reload else _config.server.workers,
    )


if __name__ == "__main__":
    run_server()
