"""Shared helpers (awaitables, YAML I/O, merging, timestamps)."""
