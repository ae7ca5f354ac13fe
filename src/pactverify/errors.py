"""Exception hierarchy for provider verification.

Configuration errors abort a run; everything recorded through the Reporter is
surfaced once, at the end, as a single ``PactFailureError``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.pactverify.reporter import Reporter


class PactVerifyError(Exception):
    """Base class for all verification errors."""


class ConfigurationError(PactVerifyError, ValueError):
    """The contract file or verifier setup cannot be used to run a verification."""


class UnsupportedMethodError(ConfigurationError):
    """A request declares an HTTP verb the request mapper does not know."""

    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported HTTP method: {method!r}")
        self.method = method


class UnknownProviderStateError(ConfigurationError):
    """An interaction declares a provider state that was never registered."""

    def __init__(self, state_name: str) -> None:
        super().__init__(
            f'providerState "{state_name}" was defined by a consumer, however could not be found. '
            "Please supply this provider state."
        )
        self.state_name = state_name


class ProviderStateError(PactVerifyError):
    """A provider-state set-up or tear-down hook failed."""


class TransportError(PactVerifyError):
    """The provider could not be reached or did not answer."""


class ContractLoadError(PactVerifyError):
    """A pact file could not be read or is not a JSON object."""


class PactFailureError(PactVerifyError, AssertionError):
    """Aggregate failure raised once at the end of a run that recorded errors."""

    def __init__(self, errors: list[str], reporter: Reporter | None = None) -> None:
        self.errors = list(errors)
        self.reporter = reporter
        lines = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(f"Pact verification failed with {len(self.errors)} error(s):\n{lines}")
