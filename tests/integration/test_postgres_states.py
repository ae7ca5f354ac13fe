"""SQL-backed provider states against a real PostgreSQL container."""
from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest
from sqlalchemy import Engine, text

from src.pactverify.errors import PactFailureError
from src.pactverify.models import ContractFile
from src.pactverify.seeding import delete_rows, seed_rows, sql_hook, sql_provider_state, truncate_hook
from src.pactverify.states import ProviderStates
from src.pactverify.transport import HttpxTransport
from src.pactverify.verifier import PactVerifier
from tests.builders import FakeProvider, interaction


pytestmark = pytest.mark.integration

OPERATOR = {"id": "test-user-123", "username": "operator-one", "privilege_level": 3}
PRIVILEGE_PATH = "/api/v1/users/test-user-123/privilege"


@pytest.fixture
def users_engine(provider_engine: Engine) -> Generator[Engine, None, None]:
    yield provider_engine
    with provider_engine.begin() as conn:
        conn.execute(text("DELETE FROM users"))


@pytest.fixture
def privilege_provider(users_engine: Engine, fake_provider: FakeProvider) -> FakeProvider:
    """Fake provider answering privilege checks from the users table."""

    def privilege(request: httpx.Request) -> httpx.Response:
        user_id = request.url.path.split("/")[-2]
        with users_engine.connect() as conn:
            row = conn.execute(
                text("SELECT privilege_level FROM users WHERE id = :id"), {"id": user_id}
            ).first()
        if row is None:
            return httpx.Response(404, json={"detail": "User not found", "error_code": "USER_NOT_FOUND"})
        return httpx.Response(200, json={"user_id": user_id, "privilege_level": row[0]})

    fake_provider.route("GET", PRIVILEGE_PATH, privilege)
    return fake_provider


class TestPostgresProviderStates:
    def test_upsert_is_idempotent(self, users_engine: Engine) -> None:
        """Running the same seed twice must leave one row."""
        hook = sql_hook(users_engine, [seed_rows("users", [OPERATOR])])
        hook()
        hook()

        with users_engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM users")).scalar_one()
        assert count == 1

    def test_check_constraint_failure_surfaces_as_recorded_error(
        self,
        users_engine: Engine,
        privilege_provider: FakeProvider,
        transport: HttpxTransport,
        make_contract: Callable[..., ContractFile],
    ) -> None:
        """A constraint violation in set-up must be recorded and the request skipped."""
        states = ProviderStates()
        states.add(
            sql_provider_state(
                "user test-user-123 has an invalid privilege",
                users_engine,
                set_up=[seed_rows("users", [{**OPERATOR, "privilege_level": 9}])],
            )
        )
        contract = make_contract(
            interaction(
                "a privilege check",
                PRIVILEGE_PATH,
                provider_state="user test-user-123 has an invalid privilege",
            )
        )

        with pytest.raises(PactFailureError) as exc_info:
            PactVerifier(transport).verify(contract, states)

        assert len(exc_info.value.errors) == 1
        assert "set-up failed" in exc_info.value.errors[0]
        assert privilege_provider.requests == []

    def test_each_interaction_sees_its_own_state(
        self,
        users_engine: Engine,
        privilege_provider: FakeProvider,
        transport: HttpxTransport,
        make_contract: Callable[..., ContractFile],
    ) -> None:
        """Each interaction must see only the rows its own state seeded."""
        states = ProviderStates(tear_down=truncate_hook(users_engine, ["users"]))
        states.add(
            sql_provider_state(
                "user test-user-123 exists with operator privilege",
                users_engine,
                set_up=[seed_rows("users", [OPERATOR])],
                tear_down=[delete_rows("users", "id", ["test-user-123"])],
            )
        )
        states.add(
            sql_provider_state(
                "user test-user-123 is an administrator",
                users_engine,
                set_up=[seed_rows("users", [{**OPERATOR, "privilege_level": 5}])],
                tear_down=[delete_rows("users", "id", ["test-user-123"])],
            )
        )
        contract = make_contract(
            interaction(
                "a privilege check for an operator",
                PRIVILEGE_PATH,
                body={"user_id": "test-user-123", "privilege_level": 3},
                provider_state="user test-user-123 exists with operator privilege",
            ),
            interaction(
                "a privilege check for an administrator",
                PRIVILEGE_PATH,
                body={"user_id": "test-user-123", "privilege_level": 5},
                provider_state="user test-user-123 is an administrator",
            ),
            interaction(
                "a privilege check once the user is gone",
                PRIVILEGE_PATH,
                status=404,
                body={"error_code": "USER_NOT_FOUND"},
            ),
        )

        reporter = PactVerifier(transport).verify(contract, states)

        assert not reporter.has_errors
