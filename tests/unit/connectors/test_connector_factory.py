"""Unit tests for connector factory helpers."""

import pytest

from nl2sql.connectors import factory as connector_factory
from nl2sql.connectors.postgres import PostgresConnector


def test_create_connector_postgres():
    connector = connector_factory.create_connector(
        database_url="postgresql://u:p@db.example.com:5433/warehouse",
    )
    assert isinstance(connector, PostgresConnector)
    assert connector.host == "db.example.com"
    assert connector.port == 5433
    assert connector.database == "warehouse"
    assert connector.user == "u"


def test_create_connector_defaults():
    connector = connector_factory.create_connector(database_url="postgres://db.local")
    assert connector.port == 5432
    assert connector.database == "sql_ai_db"
    assert connector.user == "postgres"


def test_create_connector_asyncpg_driver_suffix():
    connector = connector_factory.create_connector(
        database_url="postgresql+asyncpg://u:p@localhost/app",
        pool_size=3,
        timeout=12,
    )
    assert connector.database == "app"
    assert connector.pool_size == 3
    assert connector.timeout == 12


def test_unsupported_scheme_rejected():
    with pytest.raises(ValueError, match="Unsupported database URL scheme"):
        connector_factory.create_connector(database_url="mysql://u:p@localhost:3306/app")


def test_missing_host_rejected():
    with pytest.raises(ValueError, match="host is required"):
        connector_factory.create_connector(database_url="postgresql:///app")
