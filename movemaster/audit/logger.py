"""
Audit Logger

Every ledger mutation and every persistence problem is logged as a
structured event. The logger:
- Writes JSON lines through structlog
- Keeps the most recent events in memory for the running session
- Never raises into the caller
"""

import logging
from collections import deque
from typing import Optional

import structlog

from movemaster.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events to:
    1. Structured local log (for debugging)
    2. An in-memory ring of recent events (for the running session)
    """

    def __init__(self, history_size: int = 500):
        self._logger = structlog.get_logger("movemaster.audit")
        self._recent: deque[AuditEvent] = deque(maxlen=history_size)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._recent.append(event)
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        events = list(self._recent)
        events.reverse()
        return events[:limit]

    def log_created(
        self,
        entity_type: str,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.entity_created(entity_type, entity_id, details))

    def log_updated(
        self,
        entity_type: str,
        entity_id: str,
        changed_fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.entity_updated(entity_type, entity_id, changed_fields))

    def log_deleted(self, entity_type: str, entity_id: str) -> None:
        self.log(AuditEventBuilder.entity_deleted(entity_type, entity_id))

    def log_unlinked(
        self,
        entity_type: str,
        entity_id: str,
        affected: dict[str, list[str]],
    ) -> None:
        """Log references scrubbed after a delete. Silent when nothing changed."""
        if not any(affected.values()):
            return
        self.log(AuditEventBuilder.references_unlinked(entity_type, entity_id, affected))

    def log_save_failed(self, collections: list[str], error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(collections, error_message))

    def log_load_failed(self, collection: str, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.load_failed(collection, key, error_message))
