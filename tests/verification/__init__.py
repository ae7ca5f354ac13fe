"""Verification run tests.

Covers the orchestrator lifecycle (global and per-interaction provider-state
hooks, failure aggregation, configuration errors), the Reporter, and the
provider-state registries (in-memory, remote endpoint, SQL-backed).
"""
