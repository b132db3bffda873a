"""
Account Model - Stores every registrant subject to the verification lifecycle.

Practitioners, dispensing entities and unclaimed directory leads all live in
the same table; the verification status column is only ever changed by the
account lifecycle engine.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum, JSON, Text
import enum
from ..database import Base, utcnow

class AccountRole(str, enum.Enum):
    """
    Enumeration for registrant roles.

    Roles:
    - PRACTITIONER: Medical practitioners issuing prescriptions
    - DISPENSARY: Dispensing entities (pharmacies)
    - STAFF: Internal staff; never passes through the applicant lifecycle
    """
    PRACTITIONER = "PRACTITIONER"
    DISPENSARY = "DISPENSARY"
    STAFF = "STAFF"

class VerificationStatus(str, enum.Enum):
    """
    Enumeration for verification states.

    Status Types:
    - PENDING: Application submitted, awaiting an approval decision
    - VERIFIED: Application approved
    - REJECTED: Application rejected; terminal for the normal flow
    - DIRECTORY: Unclaimed listing without a login credential
    - TERMINATED: Access permanently revoked; no transition leaves this state
    """
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    DIRECTORY = "DIRECTORY"
    TERMINATED = "TERMINATED"

# Account id prefixes, by role
ID_PREFIXES = {
    AccountRole.PRACTITIONER: "DOC",
    AccountRole.DISPENSARY: "PH",
    AccountRole.STAFF: "STF",
}
DIRECTORY_ID_PREFIX = "DIR"

# Opaque payload fields an administrator may edit outside the workflow
PROFILE_FIELDS = (
    "name",
    "license_number",
    "state",
    "phone",
    "postal_code",
    "address",
    "city",
    "specialty",
    "clinic_name",
)

class Account(Base):
    """
    Account Model

    Fields:
    - id: Prefixed string identifier
    - name: Display name
    - email: Login email (lowercased, unique); NULL for directory leads
    - role: Registrant role
    - status: Current verification status
    - credential_hash: Hashed login credential; NULL for directory leads
    - force_credential_change: Whether a new credential is required on next login
    - license_number .. clinic_name: Opaque supporting attributes
    - documents: Uploaded credential documents as a JSON list
    - registered_at / updated_at: Lifecycle timestamps
    - terminated_at / terminated_by / termination_reason: Termination metadata
    """
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    role = Column(Enum(AccountRole), nullable=False)
    status = Column(Enum(VerificationStatus), nullable=False, default=VerificationStatus.PENDING, index=True)
    credential_hash = Column(String, nullable=True)
    force_credential_change = Column(Boolean, nullable=False, default=False)

    license_number = Column(String, nullable=True)
    state = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    specialty = Column(String, nullable=True)
    clinic_name = Column(String, nullable=True)
    documents = Column(JSON, nullable=True)

    registered_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    terminated_at = Column(DateTime(timezone=True), nullable=True)
    terminated_by = Column(String, nullable=True)
    termination_reason = Column(Text, nullable=True)

    @property
    def has_credential(self) -> bool:
        return self.credential_hash is not None

    def __repr__(self):
        return f"<Account(id={self.id}, role={self.role}, status={self.status})>"
