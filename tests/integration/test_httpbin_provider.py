"""Verify contracts against a live httpbin container.

httpbin echoes what it receives, so these runs prove the mapped request
reaches a real server byte-for-byte and the real response is compared
structurally.
"""
from __future__ import annotations

from collections.abc import Callable, Generator

import pytest

from src.pactverify.errors import PactFailureError
from src.pactverify.matchers import Like
from src.pactverify.models import ContractFile, HttpVerb, Interaction, RequestSpec, ResponseSpec
from src.pactverify.transport import HttpxTransport
from src.pactverify.verifier import PactVerifier


pytestmark = pytest.mark.integration


@pytest.fixture
def live_transport(httpbin_url: str) -> Generator[HttpxTransport, None, None]:
    with HttpxTransport(httpbin_url, timeout=10.0) as transport:
        yield transport


class TestHttpbinProvider:
    def test_echoed_request_matches_mapped_request(
        self, live_transport: HttpxTransport, make_contract: Callable[..., ContractFile]
    ) -> None:
        """The provider sees the recomputed framing headers and the serialised body."""
        contract = make_contract(
            Interaction(
                description="an event is echoed back",
                request=RequestSpec(
                    method=HttpVerb.POST,
                    path="/anything",
                    query="source=billing",
                    headers={
                        "Content-Type": "application/json; charset=utf-8",
                        "X-Custom": "My Custom header",
                        "Content-Length": "10000",
                    },
                    body={"Test": "tester", "Testing": 1},
                ),
                response=ResponseSpec(
                    status=200,
                    headers={"Content-Type": "application/json"},
                    body={
                        "method": "POST",
                        "args": {"source": "billing"},
                        "json": {"Test": "tester", "Testing": 1},
                        "headers": {
                            "Content-Type": "application/json; charset=utf-8",
                            "Content-Length": "29",
                            "X-Custom": "My Custom header",
                        },
                        "origin": Like("172.17.0.1"),
                    },
                ),
            )
        )

        reporter = PactVerifier(live_transport).verify(contract)

        assert not reporter.has_errors

    def test_status_only_interaction(
        self, live_transport: HttpxTransport, make_contract: Callable[..., ContractFile]
    ) -> None:
        """A status-only expectation must pass against a real 404."""
        contract = make_contract(
            Interaction(
                description="a missing resource",
                request=RequestSpec(method=HttpVerb.GET, path="/status/404"),
                response=ResponseSpec(status=404),
            )
        )

        reporter = PactVerifier(live_transport).verify(contract)

        assert not reporter.has_errors

    def test_mismatches_against_live_provider_are_aggregated(
        self, live_transport: HttpxTransport, make_contract: Callable[..., ContractFile]
    ) -> None:
        """Mismatches from a real server must be collected across interactions."""
        contract = make_contract(
            Interaction(
                description="the sample slideshow",
                request=RequestSpec(method=HttpVerb.GET, path="/json"),
                response=ResponseSpec(status=200, body={"slideshow": {"title": "Quarterly Numbers"}}),
            ),
            Interaction(
                description="a teapot",
                request=RequestSpec(method=HttpVerb.GET, path="/status/418"),
                response=ResponseSpec(status=200),
            ),
        )

        with pytest.raises(PactFailureError) as exc_info:
            PactVerifier(live_transport).verify(contract)

        errors = exc_info.value.errors
        assert len(errors) == 2
        assert errors[0] == (
            "1) the sample slideshow: $.body.slideshow.title: "
            "expected 'Quarterly Numbers' but was 'Sample Slide Show'"
        )
        assert errors[1] == "2) a teapot: $.status: expected status 200 but was 418"
