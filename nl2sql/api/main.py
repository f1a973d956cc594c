"""
FastAPI Application

HTTP surface for the NL-to-SQL service:
- Lifespan management: one LLM provider and one connector per process
- CORS middleware
- Exception handlers mapping the error taxonomy to status codes
- Query and health endpoints

Usage:
    uvicorn nl2sql.api.main:app --port 3000
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nl2sql import __version__
from nl2sql.api.routes import health, query
from nl2sql.config import get_settings
from nl2sql.connectors.base import ConnectionError as ConnectorConnectionError
from nl2sql.connectors.base import ExecutionError
from nl2sql.connectors.factory import create_connector
from nl2sql.llm.factory import LLMProviderFactory
from nl2sql.models.agent import AgentError, GuardViolation, ModelError, TranslationError
from nl2sql.pipeline.orchestrator import QueryOrchestrator

logger = logging.getLogger(__name__)

# Global state for shared components
app_state = {
    "orchestrator": None,
    "connector": None,
    "llm_provider": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - LLM provider (shared by every request)
    - Database connector (PostgreSQL)
    - Query orchestrator
    """
    config = get_settings()
    logger.info("Starting nl2sql API server...")

    try:
        logger.info("Initializing LLM provider...")
        try:
            app_state["llm_provider"] = LLMProviderFactory.create_default_provider(config.llm)
        except ValueError as e:
            logger.warning(f"LLM provider unavailable: {e}")
            app_state["llm_provider"] = None

        logger.info("Initializing database connector...")
        if config.database.url:
            connector = create_connector(
                database_url=str(config.database.url),
                pool_size=config.database.pool_size,
                timeout=config.database.timeout,
            )
            await connector.connect()
            app_state["connector"] = connector
        else:
            logger.warning("DATABASE_URL not set; database connector not initialized.")
            app_state["connector"] = None

        logger.info("Initializing query orchestrator...")
        if app_state["connector"] is not None and app_state["llm_provider"] is not None:
            app_state["orchestrator"] = QueryOrchestrator(
                app_state["llm_provider"],
                app_state["connector"],
                settings=config,
            )
        else:
            logger.warning("Orchestrator not initialized; LLM provider or database is missing.")
            app_state["orchestrator"] = None

        logger.info("nl2sql API server started successfully")

        yield

    finally:
        logger.info("Shutting down nl2sql API server...")

        if app_state["connector"]:
            await app_state["connector"].close()
            logger.info("Database connector closed")

        if app_state["llm_provider"]:
            await app_state["llm_provider"].close()
            logger.info("LLM provider closed")

        app_state.update({"orchestrator": None, "connector": None, "llm_provider": None})
        logger.info("nl2sql API server shut down complete")


app = FastAPI(
    title="nl2sql API",
    description="Natural language to guarded SQL over the contacts/cases schema",
    version=__version__,
    lifespan=lifespan,
)

cors_origins_env = os.getenv("CORS_ORIGINS", "")
cors_origins = (
    [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
    if cors_origins_env
    else ["*"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, exc: AgentError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": exc.message,
            "detail": {"agent": exc.agent, "recoverable": exc.recoverable},
        },
    )


@app.exception_handler(GuardViolation)
async def guard_violation_handler(request: Request, exc: GuardViolation) -> JSONResponse:
    """Reject statements the guard refused."""
    logger.warning(f"Guard violation: {exc.raw_text[:200]}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "guard_violation", exc)


@app.exception_handler(TranslationError)
async def translation_error_handler(request: Request, exc: TranslationError) -> JSONResponse:
    logger.warning(f"Translation error: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "translation_error", exc)


@app.exception_handler(ModelError)
async def model_error_handler(request: Request, exc: ModelError) -> JSONResponse:
    """Language model transport or authentication failure."""
    logger.error(f"Model error: {exc}")
    return _error_response(status.HTTP_502_BAD_GATEWAY, "model_error", exc)


@app.exception_handler(AgentError)
async def agent_error_handler(request: Request, exc: AgentError) -> JSONResponse:
    """Handle remaining agent errors with context."""
    logger.error(f"Agent error: {exc}", extra={"agent": exc.agent, "recoverable": exc.recoverable})
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "agent_error", exc)


@app.exception_handler(ExecutionError)
async def execution_error_handler(request: Request, exc: ExecutionError) -> JSONResponse:
    """The database rejected the statement."""
    logger.error(f"Query execution error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "execution_error", "message": str(exc), "detail": None},
    )


@app.exception_handler(ConnectorConnectionError)
async def connection_error_handler(request: Request, exc: ConnectorConnectionError) -> JSONResponse:
    """Handle database connection errors."""
    logger.error(f"Database connection error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "connection_error",
            "message": "Database connection failed. Please try again later.",
            "detail": None,
        },
    )


app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(query.router, prefix="/api", tags=["query"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "nl2sql API",
        "version": __version__,
        "docs": "/docs",
    }


def get_orchestrator() -> QueryOrchestrator:
    """Get the initialized orchestrator instance."""
    if app_state["orchestrator"] is None:
        raise RuntimeError("Orchestrator not initialized")
    return app_state["orchestrator"]
