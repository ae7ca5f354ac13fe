"""Matching rules for flexible response comparison.

A rule is attached to a path inside the expected response and relaxes the
default exact-equality check at that point:

    EqualityRule      exact value (on an object: no extra keys either)
    TypeRule(min)     same primitive category; on an array, every element is
                      compared against the first expected element as a template
    RegexRule(pat)    the actual scalar's string form must fully match ``pat``

Paths use the Pact notation: ``$.body.items[0].name``, ``$.body['odd key']``,
``$.headers.Content-Type``, with ``[*]`` and ``.*`` as wildcards.

Rules can also be written inline in a ResponseSpec body with the ``Like``,
``EachLike`` and ``Term`` helpers; ``extract_rules`` replaces them by their
example values and returns the rule table.
"""
from __future__ import annotations

import copy
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Union


class _Wildcard:
    """Path segment matching any key or index."""

    def __repr__(self) -> str:
        return "*"


WILDCARD = _Wildcard()

PathToken = Union[str, int, _Wildcard]
Path = tuple[PathToken, ...]

ROOT: Path = ("$",)
BODY: Path = ("$", "body")

_PATH_TOKEN = re.compile(
    r"\.(?P<name>[^.\[\]]+)"
    r"|\[(?P<index>\d+)\]"
    r"|\['(?P<quoted>[^']*)'\]"
    r'|\["(?P<dquoted>[^"]*)"\]'
    r"|(?P<star>\[\*\])"
)
_SIMPLE_NAME = re.compile(r"^[A-Za-z0-9_\-]+$")


# ---------------------------------------------------------------------------
# Rule types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EqualityRule:
    """Exact equality; stops a cascading type match."""


@dataclass(frozen=True)
class TypeRule:
    """Same primitive category; ``min`` bounds the length of template arrays."""

    min: int | None = None


@dataclass(frozen=True)
class RegexRule:
    """The actual scalar rendered as a string must fully match ``pattern``."""

    pattern: str

    def __post_init__(self) -> None:
        try:
            re.compile(self.pattern)
        except re.error as exc:
            raise ValueError(f"Invalid regex {self.pattern!r}: {exc}") from exc

    def matches(self, value: Any) -> bool:
        return re.fullmatch(self.pattern, _scalar_text(value)) is not None


MatchingRule = Union[EqualityRule, TypeRule, RegexRule]


def _scalar_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def rule_from_dict(data: Mapping[str, Any]) -> MatchingRule:
    """Build a rule from its Pact v2 dictionary form.

    >>> rule_from_dict({"match": "type", "min": 1})
    TypeRule(min=1)
    """
    match = data.get("match")
    if match == "regex" or (match is None and "regex" in data):
        return RegexRule(str(data["regex"]))
    if match == "type" or (match is None and "min" in data):
        minimum = data.get("min")
        return TypeRule(min=int(minimum) if minimum is not None else None)
    if match == "equality":
        return EqualityRule()
    raise ValueError(f"Unsupported matching rule: {dict(data)!r}")


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def parse_path(path: str) -> Path:
    """Split a Pact path expression into tokens."""
    if not path.startswith("$"):
        raise ValueError(f"Matching rule path must start with '$': {path!r}")
    tokens: list[PathToken] = ["$"]
    pos = 1
    while pos < len(path):
        match = _PATH_TOKEN.match(path, pos)
        if match is None:
            raise ValueError(f"Invalid matching rule path: {path!r}")
        if match.group("index") is not None:
            tokens.append(int(match.group("index")))
        elif match.group("quoted") is not None:
            tokens.append(match.group("quoted"))
        elif match.group("dquoted") is not None:
            tokens.append(match.group("dquoted"))
        elif match.group("name") is not None:
            name = match.group("name")
            tokens.append(WILDCARD if name == "*" else name)
        else:
            tokens.append(WILDCARD)
        pos = match.end()
    return tuple(tokens)


def render_path(tokens: Path) -> str:
    """Inverse of ``parse_path``."""
    parts = ["$"]
    for token in tokens[1:]:
        if token is WILDCARD:
            parts.append("[*]")
        elif isinstance(token, int):
            parts.append(f"[{token}]")
        elif _SIMPLE_NAME.match(token) and token != "*":
            parts.append(f".{token}")
        else:
            parts.append(f"['{token}']")
    return "".join(parts)


def _weight(pattern: Path, tokens: Path) -> int | None:
    """Number of literal segments when ``pattern`` matches ``tokens``, else None."""
    if len(pattern) != len(tokens):
        return None
    weight = 0
    for expected, actual in zip(pattern, tokens):
        if expected is WILDCARD:
            continue
        if type(expected) is not type(actual) or expected != actual:
            return None
        weight += 1
    return weight


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------


class MatchingRules:
    """Rules keyed by path, looked up by the most specific matching pattern."""

    def __init__(self, rules: Mapping[str, MatchingRule | Mapping[str, Any]] | None = None) -> None:
        self._rules: dict[str, MatchingRule] = {}
        self._compiled: dict[str, Path] = {}
        for path, rule in (rules or {}).items():
            self.add(path, rule)

    def add(self, path: str, rule: MatchingRule | Mapping[str, Any]) -> None:
        if isinstance(rule, Mapping):
            rule = rule_from_dict(rule)
        self._compiled[path] = parse_path(path)
        self._rules[path] = rule

    def find(self, tokens: Path) -> MatchingRule | None:
        best: MatchingRule | None = None
        best_weight = -1
        for path, pattern in self._compiled.items():
            weight = _weight(pattern, tokens)
            if weight is not None and weight > best_weight:
                best, best_weight = self._rules[path], weight
        return best

    def find_header(self, name: str) -> MatchingRule | None:
        """Header rules match the header name case-insensitively."""
        for path, pattern in self._compiled.items():
            if (
                len(pattern) == 3
                and pattern[1] == "headers"
                and isinstance(pattern[2], str)
                and pattern[2].lower() == name.lower()
            ):
                return self._rules[path]
        return None

    def merged(self, other: MatchingRules) -> MatchingRules:
        result = MatchingRules(self._rules)
        for path, rule in other.items():
            result.add(path, rule)
        return result

    def items(self) -> Iterator[tuple[str, MatchingRule]]:
        return iter(self._rules.items())

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MatchingRules):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self) -> str:
        return f"MatchingRules({self._rules!r})"


# ---------------------------------------------------------------------------
# Inline matcher DSL
# ---------------------------------------------------------------------------


class Matcher:
    """Base class for values that carry a matching rule."""


class Like(Matcher):
    """Match by type rather than value; cascades to nested values."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"Like({self.value!r})"


class EachLike(Matcher):
    """An array of at least ``minimum`` elements, each shaped like ``template``."""

    def __init__(self, template: Any, minimum: int = 1) -> None:
        if minimum < 1:
            raise ValueError("EachLike minimum must be at least 1")
        self.template = template
        self.minimum = minimum

    def __repr__(self) -> str:
        return f"EachLike({self.template!r}, minimum={self.minimum})"


class Term(Matcher):
    """A string matching ``matcher``; ``generate`` is the example value."""

    def __init__(self, matcher: str, generate: str) -> None:
        re.compile(matcher)
        if re.fullmatch(matcher, generate) is None:
            raise ValueError(f"Example {generate!r} does not match {matcher!r}")
        self.matcher = matcher
        self.generate = generate

    def __repr__(self) -> str:
        return f"Term({self.matcher!r}, {self.generate!r})"


def extract_rules(value: Any, path: Path = BODY) -> tuple[Any, dict[str, MatchingRule]]:
    """Replace inline matchers by example values and collect their rules."""
    rules: dict[str, MatchingRule] = {}
    plain = _extract(value, path, rules)
    return plain, rules


def _extract(value: Any, path: Path, rules: dict[str, MatchingRule]) -> Any:
    if isinstance(value, Like):
        rules[render_path(path)] = TypeRule()
        return _extract(value.value, path, rules)
    if isinstance(value, EachLike):
        rules[render_path(path)] = TypeRule(min=value.minimum)
        element = _extract(value.template, path + (WILDCARD,), rules)
        return [copy.deepcopy(element) for _ in range(value.minimum)]
    if isinstance(value, Term):
        rules[render_path(path)] = RegexRule(value.matcher)
        return value.generate
    if isinstance(value, Mapping):
        return {key: _extract(item, path + (key,), rules) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_extract(item, path + (index,), rules) for index, item in enumerate(value)]
    return value
