"""Provider-state registry.

A provider state is the precondition a consumer named when it recorded an
interaction ("user 42 exists"). The provider supplies set-up and tear-down
callbacks for each state name; the verifier invokes them around the
interaction. Global hooks run once around the whole run.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Optional

import httpx

from src.pactverify.errors import ProviderStateError

logger = logging.getLogger(__name__)

Hook = Callable[[], None]


@dataclass(frozen=True)
class ProviderState:
    name: str
    set_up: Optional[Hook] = None
    tear_down: Optional[Hook] = None


class ProviderStates:
    """Registry of provider states, looked up by exact (case-sensitive) name."""

    def __init__(
        self,
        set_up: Optional[Hook] = None,
        tear_down: Optional[Hook] = None,
        states: Iterable[ProviderState] = (),
    ) -> None:
        self.set_up = set_up
        self.tear_down = tear_down
        self._states: dict[str, ProviderState] = {}
        for state in states:
            self.add(state)

    def add(self, state: ProviderState) -> ProviderStates:
        if not state.name:
            raise ValueError("Provider state name must be a non-empty string")
        if state.name in self._states:
            raise ValueError(f'Provider state "{state.name}" has already been added')
        self._states[state.name] = state
        return self

    def find(self, name: str) -> Optional[ProviderState]:
        return self._states.get(name)

    @property
    def states(self) -> tuple[ProviderState, ...]:
        return tuple(self._states.values())

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states


class RemoteProviderStates(ProviderStates):
    """States handled by a provider-side HTTP endpoint.

    Every state name resolves. Set-up and tear-down POST a JSON document to
    ``setup_url``::

        {"consumer": "...", "state": "...", "states": ["..."], "action": "setup"}

    Explicitly added states take precedence over the endpoint.
    """

    def __init__(
        self,
        setup_url: str,
        client: httpx.Client,
        consumer_name: Optional[str] = None,
        set_up: Optional[Hook] = None,
        tear_down: Optional[Hook] = None,
        states: Iterable[ProviderState] = (),
    ) -> None:
        super().__init__(set_up=set_up, tear_down=tear_down, states=states)
        self.setup_url = setup_url
        self.consumer_name = consumer_name
        self._client = client

    def find(self, name: str) -> Optional[ProviderState]:
        registered = super().find(name)
        if registered is not None:
            return registered
        return ProviderState(
            name=name,
            set_up=lambda: self._post(name, "setup"),
            tear_down=lambda: self._post(name, "teardown"),
        )

    def _post(self, name: str, action: str) -> None:
        payload = {
            "consumer": self.consumer_name,
            "state": name,
            "states": [name],
            "action": action,
        }
        logger.debug("Provider state %s %r via %s", action, name, self.setup_url)
        try:
            response = self._client.post(self.setup_url, json=payload)
        except httpx.HTTPError as exc:
            raise ProviderStateError(f"Provider state {action} for {name!r} failed: {exc}") from exc
        if not response.is_success:
            raise ProviderStateError(
                f"Provider state {action} for {name!r} returned HTTP {response.status_code}"
            )
