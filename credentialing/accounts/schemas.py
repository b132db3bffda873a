"""
Account Schemas - Pydantic models for registrant input and serialization.

Input schemas keep identity fields optional on purpose: presence checks are
made by the lifecycle engine so that every caller gets the same
ValidationError regardless of transport.
"""
from typing import Optional, List, Dict
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from .models import AccountRole, VerificationStatus

class DocumentPayload(BaseModel):
    """
    Uploaded credential document reference. Storage is handled elsewhere.

    Fields:
    - type: Document type (e.g. MEDICAL_DEGREE, PHARMACY_LICENSE)
    - name: Original file name
    - url: Location of the stored file
    - uploaded_at: Upload time (optional)
    """
    type: str
    name: str
    url: str
    uploaded_at: Optional[datetime] = None

class ApplicationDraft(BaseModel):
    """
    Application Draft Schema - Used for practitioner and dispensary registration

    Fields:
    - name, email, password, role: Required identity fields
    - license_number .. clinic_name: Opaque supporting attributes
    - documents: Uploaded credential documents (a dispensary needs at least one)
    """
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[AccountRole] = None
    license_number: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    specialty: Optional[str] = None
    clinic_name: Optional[str] = None
    documents: List[DocumentPayload] = Field(default_factory=list)

class DirectoryLeadEntry(BaseModel):
    """
    Directory Lead Schema - Partial, unauthenticated listing data

    Fields:
    - name, phone, postal_code: Required
    - role: Defaults to PRACTITIONER
    """
    name: Optional[str] = None
    phone: Optional[str] = None
    postal_code: Optional[str] = None
    role: AccountRole = AccountRole.PRACTITIONER
    clinic_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    specialty: Optional[str] = None

class ClaimCredentials(BaseModel):
    """
    Claim Schema - Login credential attached when a directory lead is claimed

    Fields:
    - email, password: Required login credential
    - documents: Credential documents (a dispensary lead needs at least one)
    """
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    documents: List[DocumentPayload] = Field(default_factory=list)

class DecisionRequest(BaseModel):
    """Approval decision; only VERIFIED or REJECTED are accepted."""
    decision: VerificationStatus

class TerminationRequest(BaseModel):
    """Termination request with a mandatory reason."""
    reason: str = ""

class ProfileUpdate(BaseModel):
    """Administrative edit of opaque profile fields."""
    name: Optional[str] = None
    license_number: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    specialty: Optional[str] = None
    clinic_name: Optional[str] = None

class DocumentReviewRequest(BaseModel):
    """Reviewer note on one uploaded document."""
    document_name: str
    note: str = ""

class AccountResponse(BaseModel):
    """
    Account Response Schema - Returned by the account endpoints

    Never exposes the credential hash.
    """
    id: str
    name: str
    email: Optional[str] = None
    role: AccountRole
    status: VerificationStatus
    registered_at: datetime
    force_credential_change: bool = False
    license_number: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    specialty: Optional[str] = None
    clinic_name: Optional[str] = None
    documents: Optional[List[Dict]] = None
    terminated_at: Optional[datetime] = None
    terminated_by: Optional[str] = None
    termination_reason: Optional[str] = None

    class Config:
        from_attributes = True
