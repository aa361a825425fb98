"""Shared helpers for the StateGate test-suite."""
