"""
Database Connectors Module

Async database connectors. The application reads through
BaseConnector.exec_select(), which keeps its own SELECT-only check.

Usage:
    from nl2sql.connectors import create_connector

    connector = create_connector(database_url="postgresql://user:pw@localhost/sql_ai_db")
    async with connector:
        result = await connector.exec_select("SELECT * FROM contacts")
"""

from nl2sql.connectors.base import (
    BaseConnector,
    ConnectionError,
    ConnectorError,
    ExecutionError,
    QueryResult,
)
from nl2sql.connectors.factory import create_connector
from nl2sql.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "PostgresConnector",
    "create_connector",
    "QueryResult",
    "ConnectorError",
    "ConnectionError",
    "ExecutionError",
]
