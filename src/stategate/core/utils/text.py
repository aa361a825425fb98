"""Rendering of state tokens and transition names in messages."""
from __future__ import annotations

from enum import Enum
from typing import Any


def format_state(value: Any) -> str:
    """Render a state token or transition name (enum members render as their value)."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


__all__ = ["format_state"]
