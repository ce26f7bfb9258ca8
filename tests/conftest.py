"""
Pytest configuration for polyrecord.

Provides fixtures for:
- Variant registries (full, and a deposit/interest-only registry)
- Raw activity inputs in both discriminator shapes
- Database connection management for integration tests
"""

from __future__ import annotations

import os
import uuid
from typing import Any, Generator

import psycopg
from psycopg import sql
import pytest

from polyrecord.codec.discriminator import ActivityType
from polyrecord.codec.registry import VariantRegistry
from polyrecord.config import Settings
from polyrecord.variants import DepositCodec, InterestCodec, default_codecs


@pytest.fixture(scope="session")
def registry() -> VariantRegistry:
    """Registry with every shipped variant."""
    return VariantRegistry(default_codecs(), require_complete=True)


@pytest.fixture(scope="session")
def partial_registry() -> VariantRegistry:
    """Registry that only knows deposits and interest events."""
    return VariantRegistry([DepositCodec(), InterestCodec()])


@pytest.fixture
def deposit_input() -> dict[str, Any]:
    """String-keyed deposit as it arrives in a request body."""
    return {
        "type": "deposit",
        "amount": "100.00",
        "initiated_at": "2021-01-01T00:00:00Z",
        "completed_at": "2021-01-02T00:00:00Z",
    }


@pytest.fixture
def card_input() -> dict[str, Any]:
    return {
        "type": ActivityType.CARD,
        "merchant_name": "  Corner Grocery ",
        "merchant_category_code": "5411",
        "card_last_four": "4242",
    }


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "activity_feed"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def scratch_table(db_connection: psycopg.Connection) -> Generator[str, None, None]:
    """
    Unique table name for one test; dropped afterwards.
    """
    table = f"activity_test_{uuid.uuid4().hex[:12]}"
    yield table
    with db_connection.cursor() as cur:
        cur.execute(sql.SQL("DROP TABLE IF EXISTS {};").format(sql.Identifier(table)))
    db_connection.commit()
