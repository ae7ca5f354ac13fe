"""Send WireRequests to a live provider."""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from src.pactverify.errors import TransportError
from src.pactverify.models import WireRequest, WireResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Transport(Protocol):
    def send(self, request: WireRequest) -> WireResponse:
        """Send ``request``; raise TransportError if the provider cannot be reached."""
        ...


class HttpxTransport:
    """Transport backed by a synchronous ``httpx.Client``.

    Pass ``client`` to reuse a configured client (or one with an
    ``httpx.MockTransport`` in tests); otherwise one is created for
    ``base_url`` and closed by ``close()``.
    """

    def __init__(
        self,
        base_url: str = "",
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    @property
    def client(self) -> httpx.Client:
        return self._client

    def send(self, request: WireRequest) -> WireResponse:
        try:
            http_request = self._client.build_request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
            logger.debug("%s %s", http_request.method, http_request.url)
            response = self._client.send(http_request)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc

        encoding = response.headers.encoding
        headers = [
            (name.decode(encoding), value.decode(encoding)) for name, value in response.headers.raw
        ]
        logger.debug("%s %s -> %d", http_request.method, http_request.url, response.status_code)
        return WireResponse(status=response.status_code, headers=headers, body=response.content)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
