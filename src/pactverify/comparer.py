"""Structural comparison of an expected response against the provider's answer.

The comparer never raises on a divergence. It walks the whole structure and
returns every mismatch it finds, so a single run can report all of them.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from src.pactverify.headers import find_header, header_values_match
from src.pactverify.matchers import (
    BODY,
    ROOT,
    EqualityRule,
    MatchingRules,
    Path,
    RegexRule,
    TypeRule,
    render_path,
)
from src.pactverify.models import ResponseSpec


@dataclass(frozen=True)
class Mismatch:
    path: str
    expected: Any
    actual: Any
    description: str

    def __str__(self) -> str:
        return f"{self.path}: {self.description}"


def category(value: Any) -> str:
    """Primitive category used by type matching; bool is not a number."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray)):
        return "binary"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


class ResponseComparer:
    """Compare status, headers and body, collecting every Mismatch."""

    def compare(self, expected: ResponseSpec, actual: ResponseSpec) -> list[Mismatch]:
        mismatches: list[Mismatch] = []
        self._compare_status(expected, actual, mismatches)
        self._compare_headers(expected, actual, mismatches)
        self._compare_body(expected, actual, mismatches)
        return mismatches

    # -- status --------------------------------------------------------------

    @staticmethod
    def _compare_status(expected: ResponseSpec, actual: ResponseSpec, out: list[Mismatch]) -> None:
        if expected.status != actual.status:
            out.append(
                Mismatch(
                    "$.status",
                    expected.status,
                    actual.status,
                    f"expected status {expected.status} but was {actual.status}",
                )
            )

    # -- headers -------------------------------------------------------------

    @staticmethod
    def _compare_headers(expected: ResponseSpec, actual: ResponseSpec, out: list[Mismatch]) -> None:
        for name, expected_value in (expected.headers or {}).items():
            path = render_path(ROOT + ("headers", name))
            actual_value = find_header(actual.headers, name)
            if actual_value is None:
                out.append(
                    Mismatch(path, expected_value, None, f"expected header '{name}' was not present")
                )
                continue

            rule = expected.matching_rules.find_header(name)
            if isinstance(rule, RegexRule):
                matched = rule.matches(actual_value)
            elif isinstance(rule, TypeRule):
                # header values are always strings: presence is enough
                matched = True
            else:
                matched = header_values_match(name, str(expected_value), actual_value)
            if not matched:
                out.append(
                    Mismatch(
                        path,
                        expected_value,
                        actual_value,
                        f"expected header '{name}' to be {expected_value!r} but was {actual_value!r}",
                    )
                )

    # -- body ----------------------------------------------------------------

    def _compare_body(self, expected: ResponseSpec, actual: ResponseSpec, out: list[Mismatch]) -> None:
        if expected.body is None:
            return
        path = render_path(BODY)
        if actual.body is None:
            out.append(Mismatch(path, expected.body, None, "expected a body but the response had none"))
            return
        if isinstance(expected.body, (Mapping, list)) and isinstance(actual.body, (str, bytes)):
            out.append(
                Mismatch(
                    path,
                    expected.body,
                    actual.body,
                    "actual body could not be parsed as structured data",
                )
            )
            return
        _BodyWalk(expected.matching_rules, out).compare(BODY, expected.body, actual.body)


class _BodyWalk:
    def __init__(self, rules: MatchingRules, out: list[Mismatch]) -> None:
        self._rules = rules
        self._out = out

    def _mismatch(self, tokens: Path, expected: Any, actual: Any, description: str) -> None:
        self._out.append(Mismatch(render_path(tokens), expected, actual, description))

    def compare(self, tokens: Path, expected: Any, actual: Any, by_type: bool = False) -> None:
        rule = self._rules.find(tokens)
        strict_keys = False
        template_min: Optional[int] = None

        if isinstance(rule, RegexRule):
            if category(actual) in ("object", "array"):
                self._mismatch(
                    tokens,
                    rule.pattern,
                    actual,
                    f"expected a value matching /{rule.pattern}/ but was {category(actual)}",
                )
            elif not rule.matches(actual):
                self._mismatch(tokens, rule.pattern, actual, f"expected {actual!r} to match /{rule.pattern}/")
            return
        if isinstance(rule, EqualityRule):
            by_type = False
            strict_keys = True
        elif isinstance(rule, TypeRule):
            by_type = True
            if isinstance(expected, list):
                template_min = rule.min if rule.min is not None else 0

        if isinstance(expected, Mapping):
            self._compare_object(tokens, expected, actual, by_type, strict_keys)
        elif isinstance(expected, list):
            if template_min is not None:
                self._compare_template_array(tokens, expected, actual, template_min)
            else:
                self._compare_array(tokens, expected, actual, by_type)
        else:
            self._compare_scalar(tokens, expected, actual, by_type)

    def _compare_object(
        self, tokens: Path, expected: Mapping, actual: Any, by_type: bool, strict_keys: bool
    ) -> None:
        if not isinstance(actual, Mapping):
            self._mismatch(tokens, expected, actual, f"expected an object but was {category(actual)}")
            return
        for key, expected_value in expected.items():
            if key not in actual:
                self._mismatch(tokens + (key,), expected_value, None, f"expected key '{key}' was not present")
                continue
            self.compare(tokens + (key,), expected_value, actual[key], by_type)
        if strict_keys:
            for key in actual:
                if key not in expected:
                    self._mismatch(tokens + (key,), None, actual[key], f"unexpected key '{key}'")

    def _compare_array(self, tokens: Path, expected: list, actual: Any, by_type: bool) -> None:
        if not isinstance(actual, list):
            self._mismatch(tokens, expected, actual, f"expected an array but was {category(actual)}")
            return
        if len(expected) != len(actual):
            self._mismatch(
                tokens,
                expected,
                actual,
                f"expected an array of length {len(expected)} but was {len(actual)}",
            )
        for index, (expected_item, actual_item) in enumerate(zip(expected, actual)):
            self.compare(tokens + (index,), expected_item, actual_item, by_type)

    def _compare_template_array(self, tokens: Path, expected: list, actual: Any, minimum: int) -> None:
        if not isinstance(actual, list):
            self._mismatch(tokens, expected, actual, f"expected an array but was {category(actual)}")
            return
        if len(actual) < minimum:
            self._mismatch(
                tokens,
                expected,
                actual,
                f"expected an array with at least {minimum} element(s) but was {len(actual)}",
            )
        if not expected:
            return
        template = expected[0]
        for index, actual_item in enumerate(actual):
            self.compare(tokens + (index,), template, actual_item, True)

    def _compare_scalar(self, tokens: Path, expected: Any, actual: Any, by_type: bool) -> None:
        expected_category = category(expected)
        actual_category = category(actual)
        if by_type:
            if expected_category != actual_category:
                self._mismatch(
                    tokens,
                    expected,
                    actual,
                    f"expected a {expected_category} but was {actual_category} ({actual!r})",
                )
            return
        if expected_category != actual_category or expected != actual:
            self._mismatch(tokens, expected, actual, f"expected {expected!r} but was {actual!r}")
