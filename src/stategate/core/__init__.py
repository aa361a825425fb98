"""Core building blocks for StateGate."""
