"""Replay recorded interactions against a live provider.

Run lifecycle for one contract file:

    validate names -> global set-up -> interaction 1..N -> global tear-down -> verdict

Per interaction: resolve the provider state, run its set-up, report progress,
send the mapped request, compare the mapped response, record each mismatch,
and run its tear-down whatever happened. Mismatches and transport failures
are recorded and the run moves on; configuration errors abort it after the
reachable tear-downs have run. The verdict is a single PactFailureError
listing every recorded error.

Interactions run strictly in file order on the calling thread because state
hooks mutate shared provider fixtures.
"""
from __future__ import annotations

import logging
from typing import Optional

from src.pactverify.comparer import ResponseComparer
from src.pactverify.errors import (
    ConfigurationError,
    ProviderStateError,
    TransportError,
    UnknownProviderStateError,
)
from src.pactverify.mappers import RequestMapper, ResponseMapper
from src.pactverify.models import ContractFile, Interaction
from src.pactverify.reporter import Reporter
from src.pactverify.states import Hook, ProviderState, ProviderStates
from src.pactverify.transport import Transport

logger = logging.getLogger(__name__)


def validate_contract(contract: Optional[ContractFile]) -> None:
    if contract is None:
        raise ConfigurationError("Please supply a non null pact file")
    if not contract.consumer_name:
        raise ConfigurationError("Please supply a non null or empty Consumer name in the pact file")
    if not contract.provider_name:
        raise ConfigurationError("Please supply a non null or empty Provider name in the pact file")


class PactVerifier:
    """Verify contract files against a provider reachable through ``transport``."""

    def __init__(
        self,
        transport: Transport,
        request_mapper: RequestMapper | None = None,
        response_mapper: ResponseMapper | None = None,
        comparer: ResponseComparer | None = None,
    ) -> None:
        self._transport = transport
        self._request_mapper = request_mapper or RequestMapper()
        self._response_mapper = response_mapper or ResponseMapper()
        self._comparer = comparer or ResponseComparer()

    def verify(
        self,
        contract: ContractFile,
        provider_states: Optional[ProviderStates] = None,
    ) -> Reporter:
        """Verify every interaction of ``contract``.

        Returns the run's Reporter when everything matched.

        Raises:
            ConfigurationError: invalid contract, unknown verb or unknown
                provider state. Tear-down hooks have already run.
            ProviderStateError: the global set-up hook failed.
            PactFailureError: at least one error was recorded.
        """
        validate_contract(contract)
        reporter = Reporter()

        if not contract.interactions:
            logger.info(
                "No interactions between %s and %s; nothing to verify",
                contract.consumer_name,
                contract.provider_name,
            )
            return reporter

        states = provider_states or ProviderStates()
        try:
            if states.set_up is not None:
                try:
                    states.set_up()
                except Exception as exc:
                    raise ProviderStateError(f"Global provider state set-up failed: {exc}") from exc

            for number, interaction in enumerate(contract.interactions, start=1):
                self._verify_interaction(number, contract, interaction, states, reporter)
        finally:
            self._run_tear_down(states.tear_down, "Global provider state tear-down", reporter)

        reporter.raise_if_any_errors()
        return reporter

    def _verify_interaction(
        self,
        number: int,
        contract: ContractFile,
        interaction: Interaction,
        states: ProviderStates,
        reporter: Reporter,
    ) -> None:
        label = f"{number}) {interaction.description}"

        state: Optional[ProviderState] = None
        if interaction.provider_state:
            state = states.find(interaction.provider_state)
            if state is None:
                raise UnknownProviderStateError(interaction.provider_state)

        try:
            ready = True
            if state is not None and state.set_up is not None:
                try:
                    state.set_up()
                except Exception as exc:
                    reporter.report_error(
                        f"{label}: provider state {state.name!r} set-up failed: {exc}"
                    )
                    ready = False

            reporter.report_info(
                f"{number}) Verifying a Pact between {contract.consumer_name} and "
                f"{contract.provider_name} - {interaction.description}."
            )
            if ready:
                self._validate_interaction(label, interaction, reporter)
        finally:
            if state is not None:
                self._run_tear_down(
                    state.tear_down, f"{label}: provider state {state.name!r} tear-down", reporter
                )

    def _validate_interaction(self, label: str, interaction: Interaction, reporter: Reporter) -> None:
        request = self._request_mapper.convert(interaction.request)
        if request is None:
            reporter.report_error(f"{label}: interaction has no request")
            return

        try:
            wire_response = self._transport.send(request)
        except TransportError as exc:
            reporter.report_error(f"{label}: request failed: {exc}")
            return

        actual = self._response_mapper.convert(wire_response)
        for mismatch in self._comparer.compare(interaction.response, actual):
            reporter.report_error(f"{label}: {mismatch}")

    @staticmethod
    def _run_tear_down(hook: Optional[Hook], what: str, reporter: Reporter) -> None:
        if hook is None:
            return
        try:
            hook()
        except Exception as exc:
            logger.exception("%s failed", what)
            reporter.report_error(f"{what} failed: {exc}")
