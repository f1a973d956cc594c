"""
Query Routes

POST /api/query translates a prompt and returns the tagged result.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from nl2sql.models.api import AgentResult, DirectResult, QueryRequest, QueryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/query", response_model=QueryResponse)
async def run_query(query_request: QueryRequest) -> DirectResult | AgentResult:
    """
    Translate and execute a natural language prompt.

    Returns:
        DirectResult (kind="direct") or AgentResult (kind="agent")

    Raises:
        HTTPException: 503 if the orchestrator is not initialized
    """
    from nl2sql.api.main import app_state

    orchestrator = app_state.get("orchestrator")
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized. Configure DATABASE_URL and an LLM provider.",
        )

    logger.info(f"Query request received ({query_request.mode}): {query_request.prompt[:100]}")
    result = await orchestrator.process(query_request.prompt, mode=query_request.mode)

    logger.info(
        f"Query completed with {result.row_count} rows",
        extra={"kind": result.kind, "row_count": result.row_count},
    )
    return result
