"""Pact file loading tests.

Fixture pacts live in tests/pacts/ and cover the v1 (json_class matchers),
v2 (flat matchingRules) and v3 (providerStates, nested matchingRules) formats.
"""
