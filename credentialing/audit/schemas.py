"""
Audit Schemas - display models for the audit log endpoint.
"""
from pydantic import BaseModel
from datetime import datetime
from ..core.audit_models import AuditAction
from ..core.audit_service import ActorCategory, AuditEntry, render_timestamp
from ..core.pagination import PageResponse

class AuditEventResponse(BaseModel):
    """
    Audit Event Response Schema

    Fields:
    - id, action, details, timestamp: Stored event
    - actor_id, actor_name, actor_category: Actor resolved at read time
    - display_time: Timestamp rendered in the configured display timezone
    """
    id: int
    actor_id: str
    actor_name: str
    actor_category: ActorCategory
    action: AuditAction
    details: str
    timestamp: datetime
    display_time: str

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEventResponse":
        return cls(
            id=entry.event.id,
            actor_id=entry.event.actor_id,
            actor_name=entry.actor.name,
            actor_category=entry.actor.category,
            action=entry.event.action,
            details=entry.event.details or "",
            timestamp=entry.event.timestamp,
            display_time=render_timestamp(entry.event.timestamp),
        )

AuditLogPage = PageResponse[AuditEventResponse]
