"""Contract and wire data model.

Body values are plain JSON-compatible Python values (None, bool, int, float,
str, list, dict). Matching rules live beside the expected body in a
``MatchingRules`` table rather than inside it.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from src.pactverify.matchers import BODY, ROOT, MatchingRules, extract_rules

JsonValue = Union[None, bool, int, float, str, list["JsonValue"], dict[str, "JsonValue"]]

Query = Union[str, Mapping[str, Any]]


class HttpVerb(str, Enum):
    """HTTP verbs a contract interaction may declare."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"


# ---------------------------------------------------------------------------
# Contract side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestSpec:
    """The request half of an interaction, as recorded by the consumer."""

    method: HttpVerb
    path: str
    query: Optional[Query] = None
    headers: Optional[dict[str, str]] = None
    body: Any = None


@dataclass
class ResponseSpec:
    """The response half of an interaction.

    ``body`` and header values may embed ``Like``/``EachLike``/``Term``
    matchers; they are replaced by their example values and the rules are
    merged into ``matching_rules``.
    """

    status: int
    headers: Optional[dict[str, Any]] = None
    body: Any = None
    matching_rules: MatchingRules = field(default_factory=MatchingRules)

    def __post_init__(self) -> None:
        if not isinstance(self.matching_rules, MatchingRules):
            self.matching_rules = MatchingRules(self.matching_rules)

        body, body_rules = extract_rules(self.body, BODY)
        self.body = body

        header_rules: dict[str, Any] = {}
        if self.headers is not None:
            headers: dict[str, str] = {}
            for name, value in self.headers.items():
                plain, rules = extract_rules(value, ROOT + ("headers", name))
                headers[name] = plain
                header_rules.update(rules)
            self.headers = headers

        extracted = MatchingRules({**body_rules, **header_rules})
        if extracted:
            self.matching_rules = self.matching_rules.merged(extracted)


@dataclass(frozen=True)
class Interaction:
    description: str
    request: RequestSpec
    response: ResponseSpec
    provider_state: Optional[str] = None


@dataclass(frozen=True)
class ContractFile:
    """A consumer/provider pair and the interactions recorded between them."""

    consumer_name: Optional[str]
    provider_name: Optional[str]
    interactions: tuple[Interaction, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.interactions, tuple):
            object.__setattr__(self, "interactions", tuple(self.interactions))


# ---------------------------------------------------------------------------
# Wire side
# ---------------------------------------------------------------------------


@dataclass
class WireRequest:
    """A concrete HTTP request ready to be handed to a transport."""

    method: str
    path: str
    query: Optional[str] = None
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def url(self) -> str:
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    def header(self, name: str) -> str | None:
        """First value of ``name``, matched case-insensitively."""
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


@dataclass
class WireResponse:
    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
