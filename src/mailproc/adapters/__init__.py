"""Adapters that satisfy the core ports (subprocesses, MIME parsing)."""
