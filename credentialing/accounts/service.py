"""
Account Lifecycle Engine - the verification state machine.

    [PENDING] --decide(VERIFIED)--> VERIFIED
    [PENDING] --decide(REJECTED)--> REJECTED
    VERIFIED  --terminate-------->  TERMINATED
    DIRECTORY --terminate-------->  TERMINATED
    DIRECTORY --promote---------->  PENDING

Every transition is a check-and-set held under a per-account lock and
committed with a conditional update, so concurrent requests on the same
account see at most one winner. Authorization is the caller's job: the engine
trusts that the guard has already been consulted.
"""
import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from ..core.audit_models import AuditAction
from ..core.audit_service import AuditLogEngine
from ..core.locks import KeyedLock, account_locks
from ..core.notifications import LoggingNotifier, Notifier
from ..core.security import MIN_PASSWORD_LENGTH, generate_temporary_credential, hash_password
from ..database import utcnow
from ..exceptions import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from .models import Account, AccountRole, ID_PREFIXES, PROFILE_FIELDS, VerificationStatus
from .schemas import ApplicationDraft, ClaimCredentials, ProfileUpdate

# Set up logging
logger = logging.getLogger(__name__)

DECISION_OUTCOMES = (VerificationStatus.VERIFIED, VerificationStatus.REJECTED)
TERMINABLE_STATES = (VerificationStatus.VERIFIED, VerificationStatus.DIRECTORY)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def coerce_payload(schema, payload):
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, Mapping):
        try:
            return schema.model_validate(payload)
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid {schema.__name__}: {e.errors()[0]['msg']}") from e
    raise ValidationError(f"Expected {schema.__name__}")


def new_account_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class AccountLifecycleEngine:
    """
    Validates and applies status transitions for applicant accounts.

    Args:
        account_store: AccountStore used for loads and conditional updates
        audit: AuditLogEngine receiving one event per successful mutation
        notifier: Out-of-band message sender (fire-and-forget)
        locks: Per-account lock registry shared by all engine instances
    """

    def __init__(
        self,
        account_store,
        audit: AuditLogEngine,
        notifier: Optional[Notifier] = None,
        locks: KeyedLock = account_locks,
    ):
        self.accounts = account_store
        self.audit = audit
        self.notifier = notifier or LoggingNotifier()
        self.locks = locks

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def submit_application(self, draft: Union[ApplicationDraft, Mapping[str, Any]]) -> Account:
        """
        Create a PENDING account from a registration draft.

        Raises:
            ValidationError: If a required identity field is missing or the role
                does not go through the approval workflow
            DuplicateError: If the login email is already registered
        """
        draft = coerce_payload(ApplicationDraft, draft)

        missing = [f for f in ("name", "email", "password") if is_blank(getattr(draft, f))]
        if draft.role is None:
            missing.append("role")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if draft.role == AccountRole.STAFF:
            raise ValidationError("Staff accounts are not registered through the applicant workflow")
        if len(draft.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if draft.role == AccountRole.DISPENSARY and not draft.documents:
            raise ValidationError("A dispensing licence document is required for dispensary registration")

        email = str(draft.email).strip().lower()
        logger.info(f"{draft.role.value} registration attempt for email: {email}")
        if self.accounts.get_by_email(email):
            logger.warning(f"Registration failed: Email {email} already registered")
            raise DuplicateError(f"An account with email {email} already exists")

        account = Account(
            id=new_account_id(ID_PREFIXES[draft.role]),
            name=draft.name.strip(),
            email=email,
            role=draft.role,
            status=VerificationStatus.PENDING,
            credential_hash=hash_password(draft.password),
            force_credential_change=False,
            license_number=draft.license_number,
            state=draft.state,
            phone=draft.phone,
            postal_code=draft.postal_code,
            address=draft.address,
            city=draft.city,
            specialty=draft.specialty,
            clinic_name=draft.clinic_name,
            documents=[self._document(d) for d in draft.documents],
            registered_at=utcnow(),
        )
        account = self.accounts.add_account(account)
        logger.info(f"Account created (pending approval): {account.id}")

        self.audit.record(
            account.id,
            AuditAction.ACCOUNT_REGISTERED,
            f"{account.role.value} application submitted by {account.name} <{email}> as {account.id}",
        )
        return account

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def decide(self, account_id: str, actor_id: str, decision: Union[VerificationStatus, str]) -> Account:
        """
        Apply an approval decision to a PENDING account.

        Raises:
            ValidationError: If the decision is not VERIFIED or REJECTED
            InvalidTransitionError: If the account is not PENDING
        """
        try:
            decision = VerificationStatus(decision)
        except ValueError:
            raise ValidationError(f"Unknown decision: {decision}")
        if decision not in DECISION_OUTCOMES:
            raise ValidationError("Decision must be VERIFIED or REJECTED")

        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            old_status = account.status
            if old_status != VerificationStatus.PENDING:
                logger.warning(f"Decision {decision.value} refused for {account_id}: status is {old_status.value}")
                raise InvalidTransitionError(account_id, old_status, f"mark as {decision.value}")
            if not self.accounts.compare_and_set_status(account_id, old_status, decision):
                raise InvalidTransitionError(account_id, self.get_account(account_id).status, f"mark as {decision.value}")

        logger.info(f"Account {account_id} moved {old_status.value} -> {decision.value} by {actor_id}")
        self.audit.record(
            actor_id,
            AuditAction.STATUS_CHANGE,
            f"Account {account_id} status changed {old_status.value} -> {decision.value} by {actor_id}",
        )
        self._notify(account_id, f"Your application has been {decision.value.lower()}.")
        return self.get_account(account_id)

    def terminate(self, account_id: str, actor_id: str, reason: Optional[str]) -> Account:
        """
        Permanently block a VERIFIED account or a directory lead.

        A TERMINATED account is refused before the reason is looked at.

        Raises:
            ValidationError: If the reason is empty or whitespace
            InvalidTransitionError: If the account is PENDING, REJECTED or TERMINATED
        """
        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            old_status = account.status
            if old_status == VerificationStatus.TERMINATED:
                raise InvalidTransitionError(account_id, old_status, "terminate")
            if is_blank(reason):
                raise ValidationError("A termination reason is required")
            reason = reason.strip()
            if old_status not in TERMINABLE_STATES:
                logger.warning(f"Termination refused for {account_id}: status is {old_status.value}")
                raise InvalidTransitionError(account_id, old_status, "terminate")
            terminated = self.accounts.compare_and_set_status(
                account_id,
                old_status,
                VerificationStatus.TERMINATED,
                terminated_at=utcnow(),
                terminated_by=actor_id,
                termination_reason=reason,
            )
            if not terminated:
                raise InvalidTransitionError(account_id, self.get_account(account_id).status, "terminate")

        logger.info(f"Account {account_id} terminated by {actor_id}")
        self.audit.record(
            actor_id,
            AuditAction.TERMINATION,
            f"Account {account_id} terminated ({old_status.value} -> TERMINATED) by {actor_id}. Reason: {reason}",
        )
        return self.get_account(account_id)

    def promote_directory_lead(
        self, account_id: str, credentials: Union[ClaimCredentials, Mapping[str, Any]]
    ) -> Account:
        """
        Attach a login credential to a directory lead and move it to PENDING.

        Leads are ingested without documents, so the registration document
        rule applies here: a dispensary lead must supply its licence.

        Raises:
            ValidationError: If email or password is missing, or a dispensary
                lead is claimed without a licence document
            DuplicateError: If the email already belongs to another account
            InvalidTransitionError: If the account is not a DIRECTORY lead
        """
        credentials = coerce_payload(ClaimCredentials, credentials)
        missing = [f for f in ("email", "password") if is_blank(getattr(credentials, f))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if len(credentials.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        email = str(credentials.email).strip().lower()

        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            if account.status != VerificationStatus.DIRECTORY:
                raise InvalidTransitionError(account_id, account.status, "promote")
            documents = list(account.documents or []) + [self._document(d) for d in credentials.documents]
            if account.role == AccountRole.DISPENSARY and not documents:
                raise ValidationError("A dispensing licence document is required to claim a dispensary listing")
            existing = self.accounts.get_by_email(email)
            if existing is not None and existing.id != account_id:
                raise DuplicateError(f"An account with email {email} already exists")
            promoted = self.accounts.compare_and_set_status(
                account_id,
                VerificationStatus.DIRECTORY,
                VerificationStatus.PENDING,
                email=email,
                credential_hash=hash_password(credentials.password),
                documents=documents,
            )
            if not promoted:
                raise InvalidTransitionError(account_id, self.get_account(account_id).status, "promote")

        logger.info(f"Directory lead {account_id} claimed by {email}; now pending approval")
        self.audit.record(
            account_id,
            AuditAction.DIRECTORY_LEAD_PROMOTED,
            f"Directory lead {account_id} claimed with login {email}; status DIRECTORY -> PENDING",
        )
        return self.get_account(account_id)

    def reset_credential(self, account_id: str, actor_id: str) -> Account:
        """
        Replace the credential with a temporary one and require a change on
        next login. Verification status is untouched.

        Raises:
            InvalidTransitionError: If the account is TERMINATED or holds no credential
        """
        temporary = generate_temporary_credential()
        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            status = account.status
            if status in (VerificationStatus.TERMINATED, VerificationStatus.DIRECTORY):
                raise InvalidTransitionError(account_id, status, "reset the credential of")
            updated = self.accounts.compare_and_set_status(
                account_id,
                status,
                status,
                credential_hash=hash_password(temporary),
                force_credential_change=True,
            )
            if not updated:
                raise InvalidTransitionError(account_id, self.get_account(account_id).status, "reset the credential of")

        logger.info(f"Credential reset for {account_id} by {actor_id}")
        self.audit.record(
            actor_id,
            AuditAction.CREDENTIAL_RESET,
            f"Credential reset for account {account_id} by {actor_id}; change required on next login",
        )
        self._notify(
            account_id,
            f"Your password has been reset. Temporary password: {temporary}. "
            "You will be asked to choose a new password when you next sign in.",
        )
        return self.get_account(account_id)

    # ------------------------------------------------------------------
    # Administrative edits
    # ------------------------------------------------------------------

    def update_profile(
        self, account_id: str, actor_id: str, changes: Union[ProfileUpdate, Mapping[str, Any]]
    ) -> Account:
        """
        Edit opaque profile fields. Status, role, email, credential and
        termination metadata are never editable here.

        Raises:
            ValidationError: If no editable field is supplied or the name is blanked
            InvalidTransitionError: If the account is TERMINATED
        """
        changes = coerce_payload(ProfileUpdate, changes)
        values = {
            field: value
            for field, value in changes.model_dump(exclude_unset=True).items()
            if field in PROFILE_FIELDS
        }
        if not values:
            raise ValidationError("No editable fields supplied")
        if "name" in values and is_blank(values["name"]):
            raise ValidationError("Name cannot be empty")

        with self.locks.hold(account_id):
            account = self.get_account(account_id)
            status = account.status
            if status == VerificationStatus.TERMINATED:
                raise InvalidTransitionError(account_id, status, "edit")
            changed = sorted(f for f, v in values.items() if getattr(account, f) != v)
            if not changed:
                return account
            if not self.accounts.compare_and_set_status(account_id, status, status, **values):
                raise InvalidTransitionError(account_id, self.get_account(account_id).status, "edit")

        self.audit.record(
            actor_id,
            AuditAction.PROFILE_UPDATE,
            f"Profile of account {account_id} edited by {actor_id}; fields: {', '.join(changed)}",
        )
        return self.get_account(account_id)

    def review_document(self, account_id: str, actor_id: str, document_name: str, note: str = "") -> Account:
        """
        Record a reviewer's look at one uploaded document. No state change.

        Raises:
            NotFoundError: If the account has no document with that name
        """
        account = self.get_account(account_id)
        names = [d.get("name") for d in (account.documents or [])]
        if document_name not in names:
            raise NotFoundError(f"Document {document_name} not found on account {account_id}")
        details = f"Document {document_name} of account {account_id} reviewed by {actor_id}"
        if not is_blank(note):
            details += f": {note.strip()}"
        self.audit.record(actor_id, AuditAction.DOCUMENT_REVIEW, details)
        return account

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_account(self, account_id: str) -> Account:
        account = self.accounts.get_account(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def list_accounts(
        self,
        role: Optional[AccountRole] = None,
        status: Optional[VerificationStatus] = None,
    ) -> List[Account]:
        """Accounts newest first, optionally narrowed by role and status."""
        accounts = self.accounts.load_all_accounts()
        if role is not None:
            accounts = [a for a in accounts if a.role == role]
        if status is not None:
            accounts = [a for a in accounts if a.status == status]
        return accounts

    # ------------------------------------------------------------------

    @staticmethod
    def _document(document) -> Dict[str, Any]:
        payload = document.model_dump(mode="json")
        if payload.get("uploaded_at") is None:
            payload["uploaded_at"] = utcnow().isoformat()
        return payload

    def _notify(self, account_id: str, text: str) -> None:
        try:
            self.notifier.send_message(account_id, text)
        except Exception as e:
            logger.error(f"Notification to {account_id} failed: {str(e)}")
