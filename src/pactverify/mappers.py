"""Map contract requests onto the wire and wire responses back into contracts."""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import urlencode

from src.pactverify.content import HttpBodyContentMapper
from src.pactverify.errors import UnsupportedMethodError
from src.pactverify.headers import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    DEFAULT_ENCODING,
    content_type_of,
    is_framing_header,
    is_json_media_type,
)
from src.pactverify.models import HttpVerb, Query, RequestSpec, ResponseSpec, WireRequest, WireResponse

logger = logging.getLogger(__name__)


class HttpMethodMapper:
    """Case-sensitive lookup from contract verbs to wire methods."""

    _METHODS: dict[HttpVerb, str] = {verb: verb.value.upper() for verb in HttpVerb}

    def convert(self, verb: HttpVerb | str) -> str:
        try:
            return self._METHODS[HttpVerb(verb)]
        except ValueError:
            raise UnsupportedMethodError(verb) from None


class RequestMapper:
    """Compose a WireRequest from a RequestSpec.

    Framing headers are always recomputed from the mapped body; every other
    header is forwarded with its original name and position.
    """

    def __init__(
        self,
        method_mapper: HttpMethodMapper | None = None,
        body_content_mapper: HttpBodyContentMapper | None = None,
    ) -> None:
        self._method_mapper = method_mapper or HttpMethodMapper()
        self._body_content_mapper = body_content_mapper or HttpBodyContentMapper()

    def convert(self, request: Optional[RequestSpec]) -> Optional[WireRequest]:
        if request is None:
            return None

        method = self._method_mapper.convert(request.method)

        headers: list[tuple[str, str]] = []
        seen: set[str] = set()
        for name, value in (request.headers or {}).items():
            if is_framing_header(name) or name in seen:
                continue
            seen.add(name)
            headers.append((name, value))

        body_content = self._body_content_mapper.convert(request.body, request.headers)

        content_type = body_content.content_type_header
        if content_type is not None:
            headers.append((CONTENT_TYPE, content_type))
        headers.append((CONTENT_LENGTH, str(len(body_content.content))))

        return WireRequest(
            method=method,
            path=request.path,
            query=_query_string(request.query),
            headers=headers,
            body=body_content.content,
        )


def _query_string(query: Optional[Query]) -> Optional[str]:
    if query is None:
        return None
    if isinstance(query, Mapping):
        return urlencode(query, doseq=True) or None
    return query.lstrip("?") or None


class ResponseMapper:
    """Turn a WireResponse into the ResponseSpec shape used for comparison."""

    def convert(self, response: WireResponse) -> ResponseSpec:
        headers: dict[str, str] = {}
        for name, value in response.headers:
            existing = _find_key(headers, name)
            if existing is None:
                headers[name] = value
            else:
                headers[existing] = f"{headers[existing]}, {value}"

        return ResponseSpec(
            status=response.status,
            headers=headers,
            body=self._parse_body(response.body, headers),
        )

    @staticmethod
    def _parse_body(content: bytes, headers: Mapping[str, str]) -> Any:
        if not content:
            return None

        content_type = content_type_of(headers)
        encoding = (content_type.encoding if content_type else None) or DEFAULT_ENCODING

        if content_type is not None and is_json_media_type(content_type.media_type):
            try:
                text = content.decode(encoding)
            except UnicodeDecodeError:
                logger.debug("Response body is not valid %s; keeping raw bytes", encoding)
                return content
            try:
                return json.loads(text)
            except ValueError:
                logger.debug("Response declared %s but body is not JSON", content_type.media_type)
                return text

        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            if content_type is not None and content_type.media_type.startswith("text/"):
                return content.decode(encoding, errors="replace")
            return content


def _find_key(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key in headers:
        if key.lower() == name.lower():
            return key
    return None
