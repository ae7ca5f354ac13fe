"""Header and content-type classification.

``Content-Type`` and ``Content-Length`` are framing headers: the request mapper
never copies them from a contract, it derives them from the mapped body.
"""
from __future__ import annotations

import codecs
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"

FRAMING_HEADERS = frozenset({CONTENT_TYPE.lower(), CONTENT_LENGTH.lower()})

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
BINARY_MEDIA_TYPE = "application/octet-stream"

DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class ContentType:
    media_type: str
    charset: Optional[str] = None

    @property
    def encoding(self) -> Optional[str]:
        """Python codec for ``charset``; None when absent or unknown."""
        return resolve_encoding(self.charset)


def is_framing_header(name: str) -> bool:
    return name.lower() in FRAMING_HEADERS


def find_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Value of ``name`` in ``headers``, ignoring letter case."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def parse_content_type(value: str) -> ContentType:
    """Split a Content-Type value into media type and charset.

    >>> parse_content_type("application/json; charset=utf-8")
    ContentType(media_type='application/json', charset='utf-8')
    """
    parts = [part.strip() for part in value.split(";")]
    media_type = parts[0].lower()
    charset = None
    for param in parts[1:]:
        key, _, param_value = param.partition("=")
        if key.strip().lower() == "charset" and param_value:
            charset = param_value.strip().strip('"')
    return ContentType(media_type=media_type, charset=charset)


def content_type_of(headers: Optional[Mapping[str, str]]) -> Optional[ContentType]:
    value = find_header(headers, CONTENT_TYPE)
    if value is None or not value.strip():
        return None
    return parse_content_type(value)


def resolve_encoding(charset: Optional[str]) -> Optional[str]:
    """Map a charset name to a Python codec name, or None if unrecognised."""
    if not charset:
        return None
    try:
        name = codecs.lookup(charset.strip()).name
        "".encode(name)
    except LookupError:
        # unknown, or a bytes-to-bytes codec such as base64
        return None
    return name


def is_json_media_type(media_type: Optional[str]) -> bool:
    if not media_type:
        return False
    media_type = media_type.lower()
    return media_type == JSON_MEDIA_TYPE or media_type.endswith("+json")


def header_values_match(name: str, expected: str, actual: str) -> bool:
    """Whether two values of header ``name`` are equivalent.

    Content-Type compares media types case-insensitively and the charset only
    when the expectation names one. Other headers compare as comma-separated
    lists, ignoring whitespace around items.
    """
    if name.lower() == CONTENT_TYPE.lower():
        expected_type = parse_content_type(expected)
        actual_type = parse_content_type(actual)
        if expected_type.media_type != actual_type.media_type:
            return False
        if expected_type.charset is None:
            return True
        if actual_type.charset is None:
            return False
        return _same_charset(expected_type.charset, actual_type.charset)
    return _split_list(expected) == _split_list(actual)


def _same_charset(expected: str, actual: str) -> bool:
    expected_codec = resolve_encoding(expected)
    actual_codec = resolve_encoding(actual)
    if expected_codec and actual_codec:
        return expected_codec == actual_codec
    return expected.lower() == actual.lower()


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in str(value).split(",")]
