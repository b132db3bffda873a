"""
Audit Log Engine - append-only event store with a read-side query facility.

Writes go through ``record``; reads resolve every actor id against the current
account and admin directories plus a fixed set of synthetic actors, then apply
the category filter, the free-text search and pagination, in that order.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import timezone
from typing import Callable, Dict, List, Optional, Union
from zoneinfo import ZoneInfo

from ..config import settings
from ..database import utcnow
from ..exceptions import PersistenceError, ValidationError
from .audit_models import (
    AuditAction,
    AuditEvent,
    EXTERNAL_PORTAL_ACTOR_ID,
    SYSTEM_ACTOR_ID,
)
from .pagination import paginate_items

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "ALL"
TIMESTAMP_FORMAT = "%d %b %Y, %I:%M %p %Z"


class ActorCategory(str, enum.Enum):
    PRACTITIONER = "PRACTITIONER"
    DISPENSARY = "DISPENSARY"
    ADMIN = "ADMIN"
    EXTERNAL = "EXTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class ResolvedActor:
    actor_id: str
    name: str
    category: ActorCategory


@dataclass(frozen=True)
class AuditEntry:
    """An audit event joined with its resolved actor, as rendered for display."""
    event: AuditEvent
    actor: ResolvedActor

    def matches(self, needle: str) -> bool:
        haystack = (
            self.actor.name,
            self.actor.category.value,
            getattr(self.event.action, "value", self.event.action),
            self.event.details or "",
        )
        return any(needle in field.lower() for field in haystack)


@dataclass(frozen=True)
class AuditPage:
    entries: List[AuditEntry]
    total_count: int
    page: int
    page_size: int
    pages: int

    @property
    def events(self) -> List[AuditEvent]:
        return [entry.event for entry in self.entries]


SYNTHETIC_ACTORS: Dict[str, ResolvedActor] = {
    SYSTEM_ACTOR_ID: ResolvedActor(SYSTEM_ACTOR_ID, "System", ActorCategory.EXTERNAL),
    EXTERNAL_PORTAL_ACTOR_ID: ResolvedActor(
        EXTERNAL_PORTAL_ACTOR_ID, "External Portal Guest", ActorCategory.EXTERNAL
    ),
}

_ACCOUNT_CATEGORIES = {
    "PRACTITIONER": ActorCategory.PRACTITIONER,
    "DISPENSARY": ActorCategory.DISPENSARY,
    "STAFF": ActorCategory.ADMIN,
}


class ActorDirectory:
    """
    Snapshot source for actor resolution.

    Args:
        account_store: Store exposing ``load_all_accounts``
        admin_store: Store exposing ``load_all_admins``
    """

    def __init__(self, account_store=None, admin_store=None):
        self.account_store = account_store
        self.admin_store = admin_store

    def snapshot(self) -> Dict[str, ResolvedActor]:
        directory: Dict[str, ResolvedActor] = {}
        if self.account_store is not None:
            for account in self.account_store.load_all_accounts():
                role = getattr(account.role, "value", account.role)
                category = _ACCOUNT_CATEGORIES.get(role, ActorCategory.UNKNOWN)
                directory[account.id] = ResolvedActor(account.id, account.name, category)
        if self.admin_store is not None:
            for admin in self.admin_store.load_all_admins():
                directory[admin.id] = ResolvedActor(admin.id, admin.name, ActorCategory.ADMIN)
        directory.update(SYNTHETIC_ACTORS)
        return directory


def resolve_actor(actor_id: Optional[str], directory: Dict[str, ResolvedActor]) -> ResolvedActor:
    """
    Resolve an actor id for display. Unknown ids degrade to the raw id with
    category UNKNOWN; this never raises.
    """
    raw = actor_id if actor_id is not None else ""
    found = directory.get(raw)
    if found is not None:
        return found
    return ResolvedActor(raw, raw, ActorCategory.UNKNOWN)


def render_timestamp(value, tz_name: Optional[str] = None) -> str:
    """Format a stored UTC timestamp in the configured display timezone."""
    if value is None:
        return ""
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored in UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name or settings.display_timezone)).strftime(TIMESTAMP_FORMAT)


class AuditLogEngine:
    """
    Central audit writer and reader.

    Args:
        event_store: Store exposing ``append_event`` and ``load_all_events``
        directory: ActorDirectory used by the read side
        page_size: Default page size for ``query``
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        event_store,
        directory: Optional[ActorDirectory] = None,
        page_size: Optional[int] = None,
        clock: Callable = utcnow,
    ):
        self.events = event_store
        self.directory = directory or ActorDirectory()
        self.page_size = settings.audit_page_size if page_size is None else page_size
        self.clock = clock

    def record(self, actor_id: Optional[str], action: Union[AuditAction, str], details: str = "") -> AuditEvent:
        """
        Append one event with a server-assigned id and the current UTC time.

        Raises:
            ValidationError: If the action is outside the audit vocabulary
            PersistenceError: If the event could not be stored
        """
        try:
            action = AuditAction(action)
        except ValueError:
            raise ValidationError(f"Unknown audit action: {action}")

        audit_event = AuditEvent(
            actor_id=actor_id or SYSTEM_ACTOR_ID,
            action=action,
            details=details or "",
            timestamp=self.clock(),
        )
        try:
            stored = self.events.append_event(audit_event)
        except PersistenceError:
            logger.error(f"AUDIT WRITE LOST: {action.value} by {audit_event.actor_id}: {details}")
            raise
        logger.info(f"Audit {action.value} recorded for actor {stored.actor_id} (event {stored.id})")
        return stored

    def query(
        self,
        category: Union[ActorCategory, str] = ALL_CATEGORIES,
        search_text: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> AuditPage:
        """
        Read events newest first, narrowed by actor category then free text.

        Args:
            category: "ALL" or an ActorCategory
            search_text: Case-insensitive substring matched against actor name,
                actor category, action code and details
            page: 1-indexed page number; a page past the end is empty
            page_size: Overrides the engine default

        Raises:
            ValidationError: On an unknown category or non-positive paging values
        """
        size = self.page_size if page_size is None else page_size
        if page < 1 or size < 1:
            raise ValidationError("page and page_size must be positive")
        wanted = self._parse_category(category)

        directory = self.directory.snapshot()
        entries = [
            AuditEntry(event=e, actor=resolve_actor(e.actor_id, directory))
            for e in self.events.load_all_events()
        ]
        if wanted is not None:
            entries = [entry for entry in entries if entry.actor.category == wanted]
        needle = (search_text or "").strip().lower()
        if needle:
            entries = [entry for entry in entries if entry.matches(needle)]

        items, total, pages = paginate_items(entries, page, size)
        return AuditPage(entries=items, total_count=total, page=page, page_size=size, pages=pages)

    def resolve_actor(self, actor_id: Optional[str]) -> ResolvedActor:
        return resolve_actor(actor_id, self.directory.snapshot())

    @staticmethod
    def _parse_category(category) -> Optional[ActorCategory]:
        if category is None:
            return None
        value = getattr(category, "value", category)
        if str(value).upper() == ALL_CATEGORIES:
            return None
        try:
            return ActorCategory(str(value).upper())
        except ValueError:
            raise ValidationError(f"Unknown actor category: {value}")
