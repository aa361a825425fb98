"""
StateGate data resource helpers.

Bundled configuration defaults and schemas are shipped inside the package and
located with importlib.resources.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Get absolute path to a bundled data file or directory.

    Example:
        >>> get_data_path("config", "defaults.yaml")
        PosixPath('/path/to/stategate/data/config/defaults.yaml')
    """
    pkg = resources.files("stategate.data")
    base = Path(str(pkg / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]
