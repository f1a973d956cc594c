"""Query orchestration: direct vs agent routing, fallback and back-fill."""

from nl2sql.pipeline.orchestrator import QueryOrchestrator, create_orchestrator

__all__ = ["QueryOrchestrator", "create_orchestrator"]
