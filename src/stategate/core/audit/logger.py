from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

from stategate.core.audit.jsonl import append_jsonl
from stategate.core.config.domains.logging import LoggingConfig
from stategate.core.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


def resolve_logging_config(repo_root: Path | None = None) -> Optional[LoggingConfig]:
    """Load the logging config for ``repo_root``, or None if it can't be loaded."""
    try:
        cfg = LoggingConfig(repo_root=repo_root)
        # Touch the section now so a broken config fails here, not mid-transition.
        cfg.section
    except Exception as exc:
        logger.debug("Audit disabled, configuration could not be loaded: %s", exc)
        return None
    return cfg


def audit_active(cfg: Optional[LoggingConfig]) -> bool:
    """Return True when ``cfg`` asks for audit events to be written at all."""
    return cfg is not None and cfg.enabled and cfg.audit_enabled and bool(cfg.audit_path)


def audit_event(
    event: str,
    *,
    repo_root: Path | None = None,
    config: Optional[LoggingConfig] = None,
    **fields: Any,
) -> None:
    """Emit a single structured audit event as JSONL (fail-open).

    This is separate from stdlib ``logging`` so the audit stream stays
    machine-readable regardless of how the host application configures
    its log handlers.

    Pass an already resolved ``config`` from hot paths; otherwise the
    configuration for ``repo_root`` is looked up on every call.
    """
    cfg = config if config is not None else resolve_logging_config(repo_root)
    if not audit_active(cfg) or not cfg.category_enabled(event):
        return

    path = cfg.resolve_audit_path()
    if path is None:
        return

    payload: dict[str, Any] = {
        "ts": utc_timestamp(),
        "event": event,
        "pid": os.getpid(),
    }
    payload.update(fields)
    append_jsonl(path=path, payload=cfg.redact_payload(payload))


__all__ = ["audit_active", "audit_event", "resolve_logging_config"]
