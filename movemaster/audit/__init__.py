"""Audit logging package."""

from movemaster.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
