"""
Persistence collaborators consumed by the engines.

Each store wraps a SQLAlchemy session. Storage faults are rolled back and
surfaced as PersistenceError; they are never swallowed here.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .accounts.models import Account
from .admins.models import AdminActor
from .core.audit_models import AuditEvent
from .database import utcnow
from .exceptions import DuplicateError, PersistenceError

# Set up logging
logger = logging.getLogger(__name__)


class _SessionStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, e: SQLAlchemyError):
        self.db.rollback()
        if isinstance(e, IntegrityError):
            logger.warning(f"{operation} rejected by a uniqueness constraint: {str(e.orig)}")
            raise DuplicateError() from e
        logger.error(f"{operation} failed: {str(e)}")
        raise PersistenceError(f"{operation} failed") from e

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail(operation, e)

    def _read(self, operation: str, query):
        try:
            return query()
        except SQLAlchemyError as e:
            self._fail(operation, e)


class AccountStore(_SessionStore):
    """Load/save access to accounts."""

    def load_all_accounts(self) -> List[Account]:
        return self._read(
            "Loading accounts",
            lambda: self.db.query(Account).order_by(Account.registered_at.desc()).all(),
        )

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._read(
            f"Loading account {account_id}",
            lambda: self.db.query(Account).filter(Account.id == account_id).first(),
        )

    def get_by_email(self, email: str) -> Optional[Account]:
        return self._read(
            "Loading account by email",
            lambda: self.db.query(Account).filter(func.lower(Account.email) == email.lower()).first(),
        )

    def add_account(self, account: Account) -> Account:
        self.db.add(account)
        self._commit(f"Saving account {account.id}")
        self.db.refresh(account)
        return account

    def upsert_account(self, account: Account) -> Account:
        merged = self.db.merge(account)
        self._commit(f"Saving account {account.id}")
        self.db.refresh(merged)
        return merged

    def compare_and_set_status(self, account_id: str, expected, new_status, **fields) -> bool:
        """
        Atomically move an account from ``expected`` to ``new_status``.

        Returns:
            bool: False if the stored status no longer equals ``expected``
        """
        values = {"status": new_status, "updated_at": utcnow(), **fields}
        statement = (
            update(Account)
            .where(Account.id == account_id, Account.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        operation = f"Status update for account {account_id}"
        try:
            result = self.db.execute(statement)
        except SQLAlchemyError as e:
            self._fail(operation, e)
        self._commit(operation)
        return result.rowcount == 1


class AdminStore(_SessionStore):
    """Load/save access to admin actors."""

    def load_all_admins(self) -> List[AdminActor]:
        return self._read(
            "Loading admin actors",
            lambda: self.db.query(AdminActor).order_by(AdminActor.created_at).all(),
        )

    def get_admin(self, admin_id: str) -> Optional[AdminActor]:
        return self._read(
            f"Loading admin {admin_id}",
            lambda: self.db.query(AdminActor).filter(AdminActor.id == admin_id).first(),
        )

    def get_by_email(self, email: str) -> Optional[AdminActor]:
        return self._read(
            "Loading admin by email",
            lambda: self.db.query(AdminActor).filter(func.lower(AdminActor.email) == email.lower()).first(),
        )

    def count_admins(self) -> int:
        return self._read("Counting admin actors", lambda: self.db.query(AdminActor).count())

    def add_admin(self, admin: AdminActor) -> AdminActor:
        self.db.add(admin)
        self._commit(f"Saving admin {admin.id}")
        self.db.refresh(admin)
        return admin


class EventStore(_SessionStore):
    """Append-only access to audit events."""

    def load_all_events(self) -> List[AuditEvent]:
        # Newest first; equal timestamps fall back to insertion order
        return self._read(
            "Loading audit events",
            lambda: self.db.query(AuditEvent)
            .order_by(AuditEvent.timestamp.desc(), AuditEvent.id.desc())
            .all(),
        )

    def append_event(self, audit_event: AuditEvent) -> AuditEvent:
        self.db.add(audit_event)
        self._commit("Appending audit event")
        self.db.refresh(audit_event)
        return audit_event
