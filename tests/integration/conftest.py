import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from invoice_worker.config.settings import Settings
from invoice_worker.database.connection import close_pool, get_connection, init_pool
from invoice_worker.database.repositories.document_repository import PostgresDocumentRepository

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "invoice_worker" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "invoices_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run integration tests")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def pg_repository(integration_pool: None) -> Generator[PostgresDocumentRepository, None, None]:
    yield PostgresDocumentRepository()
    with get_connection() as conn:
        conn.execute("TRUNCATE documents RESTART IDENTITY")
        conn.commit()
