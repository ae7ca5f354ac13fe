"""Structural comparer tests: status, header subset and body matching rules."""
