"""
Audit Models for Move-Master

Every mutation of the ledger, and every load/save problem, is described
by an ``AuditEvent``. Events are emitted to the structured log; they are
never stored alongside the ledger data.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Entity lifecycle
    ENTITY_CREATED = "entity_created"
    ENTITY_UPDATED = "entity_updated"
    ENTITY_DELETED = "entity_deleted"
    REFERENCES_UNLINKED = "references_unlinked"
    JOB_ASSIGNED = "job_assigned"

    # Persistence
    STORE_LOADED = "store_loaded"
    STORE_SEEDED = "store_seeded"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'job', 'receipt', 'store')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_created("job", job.id, {...})
        event = AuditEventBuilder.save_failed(["jobs"], "disk full")
    """

    @staticmethod
    def entity_created(
        entity_type: str,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_CREATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} created",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def entity_updated(
        entity_type: str,
        entity_id: str,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_UPDATED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} updated ({len(changed_fields)} fields)",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def entity_deleted(
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTITY_DELETED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def references_unlinked(
        entity_type: str,
        entity_id: str,
        affected: dict[str, list[str]],
    ) -> AuditEvent:
        total = sum(len(ids) for ids in affected.values())
        return AuditEvent(
            event_type=AuditEventType.REFERENCES_UNLINKED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Unlinked {total} references to deleted {entity_type}",
            details={"affected": affected},
        )

    @staticmethod
    def job_assigned(
        job_id: str,
        driver_id: str,
        truck_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOB_ASSIGNED,
            entity_type="job",
            entity_id=job_id,
            description="Job dispatch assignment changed",
            details={"driver_id": driver_id, "truck_id": truck_id},
            is_user_action=True,
        )

    @staticmethod
    def store_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            entity_type="store",
            description=f"Store loaded with {sum(counts.values())} records",
            details={"counts": counts},
        )

    @staticmethod
    def store_seeded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SEEDED,
            entity_type="store",
            description="Empty store seeded with sample records",
            details={"counts": counts},
        )

    @staticmethod
    def load_failed(
        collection: str,
        key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="store",
            description=f"Could not load {collection}; starting it empty",
            error_message=error_message,
            details={"collection": collection, "key": key},
        )

    @staticmethod
    def save_failed(
        collections: list[str],
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description=f"Failed to persist {', '.join(collections)}",
            error_message=error_message,
            details={"collections": collections},
        )
