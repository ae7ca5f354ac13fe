"""Serialise an interaction's request body into bytes plus framing metadata."""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from src.pactverify.headers import (
    BINARY_MEDIA_TYPE,
    DEFAULT_ENCODING,
    FORM_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    TEXT_MEDIA_TYPE,
    content_type_of,
    is_json_media_type,
)


@dataclass(frozen=True)
class HttpBodyContent:
    """Mapped body bytes with the media type and encoding used to produce them."""

    content: bytes
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def content_type_header(self) -> Optional[str]:
        if self.content_type is None:
            return None
        if self.encoding:
            return f"{self.content_type}; charset={self.encoding}"
        return self.content_type


EMPTY_BODY = HttpBodyContent(content=b"")


def to_json_text(value: Any) -> str:
    """Compact JSON, keys in insertion order."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class HttpBodyContentMapper:
    """Pure mapping from (body value, declared headers) to HttpBodyContent."""

    def convert(self, body: Any, headers: Optional[Mapping[str, str]]) -> HttpBodyContent:
        if body is None:
            return EMPTY_BODY

        declared = content_type_of(headers)
        if declared is not None:
            media_type = declared.media_type
        elif isinstance(body, (Mapping, list, tuple)):
            media_type = JSON_MEDIA_TYPE
        elif isinstance(body, (bytes, bytearray)):
            media_type = BINARY_MEDIA_TYPE
        else:
            media_type = TEXT_MEDIA_TYPE

        if isinstance(body, (bytes, bytearray)):
            encoding = declared.encoding if declared is not None else None
            return HttpBodyContent(bytes(body), media_type, encoding)

        encoding = (declared.encoding if declared is not None else None) or DEFAULT_ENCODING
        text = self._serialise(body, media_type)
        return HttpBodyContent(text.encode(encoding), media_type, encoding)

    @staticmethod
    def _serialise(body: Any, media_type: str) -> str:
        if is_json_media_type(media_type):
            return to_json_text(body)
        if media_type == FORM_MEDIA_TYPE and isinstance(body, Mapping):
            return urlencode(body, doseq=True)
        if isinstance(body, str):
            return body
        return to_json_text(body)
