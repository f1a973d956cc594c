"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from nl2sql import __version__
from nl2sql.connectors.base import ConnectorError
from nl2sql.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """Basic liveness check. Always 200 while the process is up."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for service dependencies.

    Checks:
    - Database connection answers SELECT 1
    - LLM provider is configured
    - Orchestrator is initialized

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    from nl2sql.api.main import app_state

    checks: dict[str, bool] = {}

    connector = app_state["connector"]
    if connector is None:
        checks["database"] = False
        logger.warning("Database check: FAILED (connector not initialized)")
    else:
        try:
            await connector.exec_select("SELECT 1")
            checks["database"] = True
        except ConnectorError as e:
            checks["database"] = False
            logger.warning(f"Database check: FAILED ({e})")

    checks["llm"] = app_state["llm_provider"] is not None
    checks["orchestrator"] = app_state["orchestrator"] is not None

    all_ready = all(checks.values())
    response_data = ReadinessResponse(
        status="ready" if all_ready else "not_ready",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )

    status_code = status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=response_data.model_dump())
