"""Domain-specific configuration for StateGate audit logging.

This config controls:
- Whether structured audit events are emitted at all
- Where the audit JSONL stream is written
- Which event categories (guard.*, transition.*) are recorded
- Redaction of sensitive values before they reach disk
"""

from __future__ import annotations

import re
from functools import cached_property
from pathlib import Path
from typing import Any

from ..base import BaseDomainConfig


class LoggingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "logging"

    @cached_property
    def enabled(self) -> bool:
        return bool(self.section.get("enabled", False))

    @cached_property
    def audit_enabled(self) -> bool:
        audit = self.section.get("audit") or {}
        return bool(audit.get("enabled", True))

    @cached_property
    def audit_path(self) -> str:
        audit = self.section.get("audit") or {}
        return str(audit.get("path") or "").strip()

    @cached_property
    def guards_enabled(self) -> bool:
        guards = self.section.get("guards") or {}
        return bool(guards.get("enabled", True))

    @cached_property
    def transitions_enabled(self) -> bool:
        transitions = self.section.get("transitions") or {}
        return bool(transitions.get("enabled", True))

    @cached_property
    def redaction_enabled(self) -> bool:
        red = self.section.get("redaction") or {}
        return bool(red.get("enabled", False))

    @cached_property
    def redaction_replacement(self) -> str:
        red = self.section.get("redaction") or {}
        return str(red.get("replacement", "[REDACTED]") or "[REDACTED]")

    @cached_property
    def _compiled_redaction_patterns(self) -> list[re.Pattern[str]]:
        if not self.redaction_enabled:
            return []
        red = self.section.get("redaction") or {}
        compiled: list[re.Pattern[str]] = []
        for pat in red.get("patterns") or []:
            if not str(pat).strip():
                continue
            try:
                compiled.append(re.compile(str(pat)))
            except re.error:
                continue
        return compiled

    def category_enabled(self, event: str) -> bool:
        if event.startswith("guard."):
            return self.guards_enabled
        if event.startswith("transition."):
            return self.transitions_enabled
        return True

    def redact_text(self, text: str) -> str:
        out = text
        for pat in self._compiled_redaction_patterns:
            out = pat.sub(self.redaction_replacement, out)
        return out

    def redact_payload(self, payload: Any) -> Any:
        if not self._compiled_redaction_patterns:
            return payload
        if isinstance(payload, str):
            return self.redact_text(payload)
        if isinstance(payload, dict):
            return {k: self.redact_payload(v) for k, v in payload.items()}
        if isinstance(payload, list):
            return [self.redact_payload(v) for v in payload]
        return payload

    def resolve_audit_path(self) -> Path | None:
        if not self.audit_path:
            return None
        path = Path(self.audit_path).expanduser()
        if not path.is_absolute():
            path = self.repo_root / path
        return path.resolve()


__all__ = ["LoggingConfig"]
