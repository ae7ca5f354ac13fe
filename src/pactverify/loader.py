"""Read Pact JSON files into ContractFile objects.

Accepts the interaction fields of Pact specification v1 through v3:

- ``providerState`` (v1/v2) or ``providerStates[0].name`` (v3)
- ``matchingRules`` as flat v2 paths or nested v3 categories
- v1 embedded Ruby matchers (``json_class`` ``Pact::SomethingLike``,
  ``Pact::ArrayLike``, ``Pact::Term``)

Name validation is left to the verifier so that a bad file fails the same way
whether it came from disk or was built in code.
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from src.pactverify.errors import ContractLoadError
from src.pactverify.matchers import EachLike, Like, MatchingRules, Term, extract_rules
from src.pactverify.models import ContractFile, HttpVerb, Interaction, RequestSpec, ResponseSpec

logger = logging.getLogger(__name__)


def load_contract(path: Union[str, Path]) -> ContractFile:
    """Load and parse the pact file at ``path``."""
    pact_path = Path(path)
    try:
        data = json.loads(pact_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ContractLoadError(f"Cannot read pact file {pact_path}: {exc}") from exc
    except ValueError as exc:
        raise ContractLoadError(f"Pact file {pact_path} is not valid JSON: {exc}") from exc
    logger.debug("Loaded pact file %s", pact_path)
    return parse_contract(data)


def parse_contract(data: Any) -> ContractFile:
    if not isinstance(data, Mapping):
        raise ContractLoadError("Pact file must contain a JSON object")

    interactions = data.get("interactions") or []
    if not isinstance(interactions, list):
        raise ContractLoadError("'interactions' must be a list")

    return ContractFile(
        consumer_name=_name_of(data.get("consumer")),
        provider_name=_name_of(data.get("provider")),
        interactions=tuple(_parse_interaction(item, index) for index, item in enumerate(interactions)),
        metadata=dict(data.get("metadata") or {}),
    )


def _name_of(pacticipant: Any) -> str | None:
    if isinstance(pacticipant, Mapping):
        name = pacticipant.get("name")
        return str(name) if name else None
    return None


def _parse_interaction(data: Any, index: int) -> Interaction:
    if not isinstance(data, Mapping):
        raise ContractLoadError(f"Interaction {index} must be a JSON object")
    request = data.get("request")
    response = data.get("response")
    if not isinstance(request, Mapping) or not isinstance(response, Mapping):
        raise ContractLoadError(f"Interaction {index} needs both a request and a response")

    return Interaction(
        description=str(data.get("description") or f"interaction {index + 1}"),
        provider_state=_provider_state_of(data),
        request=_parse_request(request),
        response=_parse_response(response, index),
    )


def _provider_state_of(data: Mapping[str, Any]) -> str | None:
    state = data.get("providerState") or data.get("provider_state")
    if state:
        return str(state)
    states = data.get("providerStates")
    if isinstance(states, list) and states:
        if len(states) > 1:
            logger.warning("Only the first of %d provider states is used", len(states))
        first = states[0]
        if isinstance(first, Mapping) and first.get("name"):
            return str(first["name"])
    return None


def _parse_request(data: Mapping[str, Any]) -> RequestSpec:
    method = data.get("method")
    try:
        verb: HttpVerb | str = HttpVerb(str(method).lower())
    except ValueError:
        # rejected by the request mapper when the interaction is verified
        verb = str(method)

    query = data.get("query")
    if isinstance(query, Mapping):
        query = dict(query)
    elif query is not None:
        query = str(query)

    headers = data.get("headers")
    return RequestSpec(
        method=verb,
        path=str(data.get("path") or "/"),
        query=query,
        headers={str(k): _header_value(v) for k, v in headers.items()} if headers else None,
        body=_example_of(data["body"]) if "body" in data else None,
    )


def _example_of(value: Any) -> Any:
    """Request bodies are sent as-is; any v1 matchers collapse to their examples."""
    plain, _ = extract_rules(_convert_ruby_matchers(value))
    return plain


def _parse_response(data: Mapping[str, Any], index: int) -> ResponseSpec:
    try:
        status = int(data.get("status", 200))
    except (TypeError, ValueError):
        raise ContractLoadError(
            f"Interaction {index} has an invalid status {data.get('status')!r}"
        ) from None

    headers = data.get("headers")
    return ResponseSpec(
        status=status,
        headers={str(k): _convert_ruby_matchers(v) for k, v in headers.items()} if headers else None,
        body=_convert_ruby_matchers(data["body"]) if "body" in data else None,
        matching_rules=_parse_matching_rules(data.get("matchingRules")),
    )


def _header_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def _parse_matching_rules(data: Any) -> MatchingRules:
    rules = MatchingRules()
    if not isinstance(data, Mapping):
        return rules
    for path, rule in _flatten_rules(data):
        try:
            rules.add(path, rule)
        except ValueError as exc:
            logger.warning("Ignoring matching rule at %s: %s", path, exc)
    return rules


def _flatten_rules(data: Mapping[str, Any]):
    """Yield (path, rule) pairs from v2 flat or v3 nested matchingRules."""
    for key, value in data.items():
        if key.startswith("$"):
            yield key, value
            continue
        # v3: {"body": {"$.x": {"matchers": [...]}}, "header": {"Name": {...}}}
        if not isinstance(value, Mapping):
            continue
        for sub_path, entry in value.items():
            if key == "body":
                path = "$.body" + sub_path[1:] if sub_path.startswith("$") else f"$.body.{sub_path}"
            elif key in ("header", "headers"):
                path = f"$.headers.{sub_path}"
            else:
                logger.warning("Ignoring %s matching rules; only body and headers are compared", key)
                break
            matchers = entry.get("matchers") if isinstance(entry, Mapping) else None
            if matchers:
                if len(matchers) > 1:
                    logger.warning("Only the first matcher at %s is used", path)
                yield path, matchers[0]


def _convert_ruby_matchers(value: Any) -> Any:
    """Turn v1 ``json_class`` matcher objects into Like / EachLike / Term."""
    if isinstance(value, list):
        return [_convert_ruby_matchers(item) for item in value]
    if not isinstance(value, Mapping):
        return value

    json_class = value.get("json_class")
    if json_class == "Pact::SomethingLike":
        return Like(_convert_ruby_matchers(value.get("contents")))
    if json_class == "Pact::ArrayLike":
        return EachLike(_convert_ruby_matchers(value.get("contents")), minimum=int(value.get("min", 1)))
    if json_class == "Pact::Term":
        term = value.get("data", {})
        matcher = term.get("matcher", {})
        pattern = matcher.get("s") if isinstance(matcher, Mapping) else matcher
        try:
            return Term(str(pattern), str(term.get("generate")))
        except (ValueError, re.error) as exc:
            raise ContractLoadError(f"Invalid Pact::Term: {exc}") from exc
    return {key: _convert_ruby_matchers(item) for key, item in value.items()}

