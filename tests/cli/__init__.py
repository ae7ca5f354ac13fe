"""Command-line runner and environment configuration tests."""
