"""Connector factory for supported database URLs."""

from __future__ import annotations

from urllib.parse import urlparse

from nl2sql.connectors.base import BaseConnector
from nl2sql.connectors.postgres import PostgresConnector

_POSTGRES_SCHEMES = {"postgres", "postgresql"}


def create_connector(
    *,
    database_url: str,
    pool_size: int = 10,
    timeout: int = 30,
    **kwargs,
) -> BaseConnector:
    """Create a connector instance from a database URL."""
    parsed = _parse_url(database_url)
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    scheme = parsed.scheme.split("+")[0].lower()
    if scheme not in _POSTGRES_SCHEMES:
        raise ValueError(f"Unsupported database URL scheme: {parsed.scheme}")

    return PostgresConnector(
        host=parsed.hostname,
        port=parsed.port or 5432,
        database=parsed.path.lstrip("/") or "sql_ai_db",
        user=parsed.username or "postgres",
        password=parsed.password or "",
        pool_size=pool_size,
        timeout=timeout,
        **kwargs,
    )


def _parse_url(database_url: str):
    normalized = database_url.replace("postgresql+asyncpg://", "postgresql://")
    return urlparse(normalized)
