"""Root conftest: markers and real-infrastructure fixtures using Testcontainers.

Provides a session-scoped PostgreSQL container (provider fixture database for
SQL-backed provider states) and an httpbin container (a live HTTP provider)
so integration tests run the verifier against genuine services rather than
mocks.
"""
from __future__ import annotations

import os
from collections.abc import Generator

import pytest
from sqlalchemy import Engine, create_engine, text
from testcontainers.core.container import DockerContainer
from testcontainers.core.waiting_utils import wait_for_logs
from testcontainers.postgres import PostgresContainer


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers to suppress PytestUnknownMarkWarning."""
    config.addinivalue_line("markers", "mapping: Request/response mapping tests")
    config.addinivalue_line("markers", "comparison: Structural comparer and matching rule tests")
    config.addinivalue_line("markers", "verification: Orchestrator, reporter and provider state tests")
    config.addinivalue_line("markers", "contract: Pact file loading tests")
    config.addinivalue_line("markers", "cli: Command-line runner tests")
    config.addinivalue_line("markers", "integration: Requires real infrastructure containers")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip container-backed tests unless Testcontainers are enabled."""
    skip_no_containers = pytest.mark.skip(
        reason="Testcontainers disabled, set PACTVERIFY_USE_TESTCONTAINERS=true"
    )
    use_testcontainers = os.getenv("PACTVERIFY_USE_TESTCONTAINERS", "false").lower() == "true"

    for item in items:
        if "integration" in item.keywords and not use_testcontainers:
            item.add_marker(skip_no_containers)


# ---------------------------------------------------------------------------
# Container fixtures (session-scoped: start once, share across all tests)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Start a real PostgreSQL container holding provider fixture data."""
    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def httpbin_container() -> Generator[DockerContainer, None, None]:
    """Start httpbin as a live provider for end-to-end verification runs."""
    with DockerContainer("kennethreitz/httpbin").with_exposed_ports(80) as httpbin:
        wait_for_logs(httpbin, "Listening at", timeout=60)
        yield httpbin


# ---------------------------------------------------------------------------
# Provider database
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def provider_engine(postgres_container: PostgresContainer) -> Generator[Engine, None, None]:
    """SQLAlchemy engine for the provider database, with a minimal users table."""
    engine = create_engine(postgres_container.get_connection_url(), pool_pre_ping=True)

    with engine.begin() as conn:
        conn.execute(
            text("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL,
                    privilege_level INTEGER NOT NULL CHECK (privilege_level BETWEEN 1 AND 5)
                )
            """)
        )

    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def httpbin_url(httpbin_container: DockerContainer) -> str:
    """Base URL of the httpbin provider container."""
    host = httpbin_container.get_container_host_ip()
    port = httpbin_container.get_exposed_port(80)
    return f"http://{host}:{port}"
