from .logger import audit_active, audit_event, resolve_logging_config

__all__ = ["audit_active", "audit_event", "resolve_logging_config"]
