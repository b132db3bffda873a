import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, Text, event

from ..database import Base, utcnow
from ..exceptions import PersistenceError

# Well-known synthetic actors
SYSTEM_ACTOR_ID = "SYSTEM"
EXTERNAL_PORTAL_ACTOR_ID = "EXTERNAL_PORTAL"

class AuditAction(str, enum.Enum):
    """Closed vocabulary of audited actions."""
    ACCOUNT_REGISTERED = "ACCOUNT_REGISTERED"
    STATUS_CHANGE = "STATUS_CHANGE"
    TERMINATION = "TERMINATION"
    DIRECTORY_LEAD_ADDED = "DIRECTORY_LEAD_ADDED"
    DIRECTORY_LEAD_PROMOTED = "DIRECTORY_LEAD_PROMOTED"
    CREDENTIAL_RESET = "CREDENTIAL_RESET"
    PROFILE_UPDATE = "PROFILE_UPDATE"
    DOCUMENT_REVIEW = "DOCUMENT_REVIEW"
    ADMIN_CREATED = "ADMIN_CREATED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

class AuditEvent(Base):
    """
    Immutable audit record. Written once, never updated or deleted.

    actor_id is deliberately not a foreign key: events outlive the actors
    they reference.
    """
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    actor_id = Column(String, nullable=False, index=True)
    action = Column(Enum(AuditAction), nullable=False, index=True)
    details = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, actor_id='{self.actor_id}', action='{self.action}', timestamp='{self.timestamp}')>"


@event.listens_for(AuditEvent, "before_update")
def _reject_update(mapper, connection, target):
    raise PersistenceError(f"Audit event {target.id} is immutable and cannot be modified")


@event.listens_for(AuditEvent, "before_delete")
def _reject_delete(mapper, connection, target):
    raise PersistenceError(f"Audit event {target.id} is immutable and cannot be deleted")
