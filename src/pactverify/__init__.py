"""Provider-side verification of consumer-driven contracts.

Replays every interaction recorded in a pact file against a running provider,
compares each answer with the recorded expectation (status, header subset,
structural body match with type/regex rules) and reports all mismatches of
the run at once.

Usage:
    # From Python (e.g. in a provider's test suite):
    from src.pactverify.loader import load_contract
    from src.pactverify.states import ProviderState, ProviderStates
    from src.pactverify.transport import HttpxTransport
    from src.pactverify.verifier import PactVerifier

    states = ProviderStates(states=[ProviderState("user 42 exists", set_up=create_user)])
    with HttpxTransport("http://localhost:8000") as transport:
        PactVerifier(transport).verify(load_contract("pacts/web-users.json"), states)

    # From shell:
    python -m src.pactverify.cli pacts/web-users.json --provider-base-url http://localhost:8000
"""
