"""End-to-end verification against real services via Testcontainers.

All tests require PACTVERIFY_USE_TESTCONTAINERS=true and Docker socket access.
"""
