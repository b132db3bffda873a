"""
Directory Ingestion - turns unauthenticated listing data into DIRECTORY accounts.

Leads carry no credential and no documents; those are only required once a
lead is claimed through ``AccountLifecycleEngine.promote_directory_lead``.
"""
import logging
from typing import Any, Mapping, Optional, Union

from ..core.audit_models import AuditAction, SYSTEM_ACTOR_ID
from ..core.audit_service import AuditLogEngine
from ..database import utcnow
from ..exceptions import ValidationError
from .models import Account, AccountRole, DIRECTORY_ID_PREFIX, VerificationStatus
from .schemas import DirectoryLeadEntry
from .service import is_blank, coerce_payload, new_account_id

# Set up logging
logger = logging.getLogger(__name__)


class DirectoryIngestion:
    """
    Producer of provisional accounts feeding the lifecycle engine.

    Args:
        account_store: AccountStore used to persist leads
        audit: AuditLogEngine receiving DIRECTORY_LEAD_ADDED events
    """

    def __init__(self, account_store, audit: AuditLogEngine):
        self.accounts = account_store
        self.audit = audit

    def add_directory_lead(
        self,
        entry: Union[DirectoryLeadEntry, Mapping[str, Any]],
        actor_id: Optional[str] = None,
    ) -> Account:
        """
        Create a DIRECTORY account from partial listing data.

        Raises:
            ValidationError: If name, phone or postal code is missing, or the
                role is STAFF
        """
        entry = coerce_payload(DirectoryLeadEntry, entry)
        missing = [f for f in ("name", "phone", "postal_code") if is_blank(getattr(entry, f))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if entry.role == AccountRole.STAFF:
            raise ValidationError("Directory leads must be practitioners or dispensaries")

        lead = Account(
            id=new_account_id(DIRECTORY_ID_PREFIX),
            name=entry.name.strip(),
            email=None,
            role=entry.role,
            status=VerificationStatus.DIRECTORY,
            credential_hash=None,
            force_credential_change=False,
            phone=entry.phone.strip(),
            postal_code=entry.postal_code.strip(),
            clinic_name=entry.clinic_name,
            address=entry.address,
            city=entry.city,
            state=entry.state,
            specialty=entry.specialty,
            documents=[],
            registered_at=utcnow(),
        )
        lead = self.accounts.upsert_account(lead)
        logger.info(f"Directory lead added: {lead.id} ({lead.name})")

        self.audit.record(
            actor_id or SYSTEM_ACTOR_ID,
            AuditAction.DIRECTORY_LEAD_ADDED,
            f"Directory lead {lead.id} added for {lead.name} ({lead.postal_code})",
        )
        return lead
