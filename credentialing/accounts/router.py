"""
Account routes for registration, directory leads and the approval workflow.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..admins.models import AdminActor
from ..core.audit_service import AuditLogEngine
from ..core.permissions import (
    AdminPermission,
    authorize,
    decision_permission_for,
    view_permission_for,
)
from ..dependencies import (
    get_audit_engine,
    get_current_admin,
    get_directory_ingestion,
    get_lifecycle_engine,
    guard,
    require_permission,
)
from .directory import DirectoryIngestion
from .models import AccountRole, VerificationStatus
from .schemas import (
    AccountResponse,
    ApplicationDraft,
    ClaimCredentials,
    DecisionRequest,
    DirectoryLeadEntry,
    DocumentReviewRequest,
    ProfileUpdate,
    TerminationRequest,
)
from .service import AccountLifecycleEngine

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


def _view_permission(role) -> AdminPermission:
    # Staff records are only visible to admins managing the platform
    return view_permission_for(role) or AdminPermission.MANAGE_SYSTEM_SETTINGS


# ============================================================================
# PUBLIC ROUTES
# ============================================================================

@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED, summary="Submit Application")
def register_route(
    draft: ApplicationDraft,
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Practitioner or dispensary self-registration. The account starts PENDING.
    """
    return engine.submit_application(draft)


@router.post("/{account_id}/claim", response_model=AccountResponse, summary="Claim Directory Listing")
def claim_route(
    account_id: str,
    credentials: ClaimCredentials,
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Attach a login to a directory lead; the lead then awaits approval.
    """
    return engine.promote_directory_lead(account_id, credentials)


# ============================================================================
# ADMIN ROUTES
# ============================================================================

@router.post("/directory", response_model=AccountResponse, status_code=status.HTTP_201_CREATED, summary="Add Directory Lead")
def add_directory_lead_route(
    entry: DirectoryLeadEntry,
    current_admin: AdminActor = Depends(require_permission(AdminPermission.MANAGE_SYSTEM_SETTINGS)),
    ingestion: DirectoryIngestion = Depends(get_directory_ingestion),
):
    return ingestion.add_directory_lead(entry, actor_id=current_admin.id)


@router.get("", response_model=List[AccountResponse], summary="List Accounts")
def list_accounts_route(
    role: Optional[AccountRole] = Query(None),
    account_status: Optional[VerificationStatus] = Query(None, alias="status"),
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    """
    List accounts newest first. Without a role filter only the roles the
    admin may view are returned.
    """
    if role is not None:
        guard(current_admin, _view_permission(role), audit)
        return engine.list_accounts(role=role, status=account_status)

    visible = {
        r for r in (AccountRole.PRACTITIONER, AccountRole.DISPENSARY)
        if current_admin.is_active and authorize(current_admin, view_permission_for(r))
    }
    if not visible:
        guard(current_admin, AdminPermission.VIEW_PRACTITIONER_LIST, audit)
    return [a for a in engine.list_accounts(status=account_status) if a.role in visible]


@router.get("/{account_id}", response_model=AccountResponse, summary="Get Account")
def get_account_route(
    account_id: str,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    account = engine.get_account(account_id)
    guard(current_admin, _view_permission(account.role), audit, target=account_id)
    return account


@router.post("/{account_id}/decision", response_model=AccountResponse, summary="Approve or Reject")
def decision_route(
    account_id: str,
    request: DecisionRequest,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    """
    Move a PENDING account to VERIFIED or REJECTED. The permission needed
    depends on the applicant's role.
    """
    account = engine.get_account(account_id)
    guard(current_admin, decision_permission_for(account.role), audit, target=account_id)
    return engine.decide(account_id, current_admin.id, request.decision)


@router.post("/{account_id}/terminate", response_model=AccountResponse, summary="Terminate Account")
def terminate_route(
    account_id: str,
    request: TerminationRequest,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    guard(current_admin, AdminPermission.TERMINATE_ACCOUNTS, audit, target=account_id)
    return engine.terminate(account_id, current_admin.id, request.reason)


@router.post("/{account_id}/reset-credential", response_model=AccountResponse, summary="Reset Credential")
def reset_credential_route(
    account_id: str,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    """
    Issue a temporary credential. The account owner is notified out of band.
    """
    guard(current_admin, AdminPermission.TERMINATE_ACCOUNTS, audit, target=account_id)
    return engine.reset_credential(account_id, current_admin.id)


@router.patch("/{account_id}", response_model=AccountResponse, summary="Edit Profile")
def update_profile_route(
    account_id: str,
    changes: ProfileUpdate,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    guard(current_admin, AdminPermission.MANAGE_SYSTEM_SETTINGS, audit, target=account_id)
    return engine.update_profile(account_id, current_admin.id, changes)


@router.post("/{account_id}/documents/review", response_model=AccountResponse, summary="Review Document")
def review_document_route(
    account_id: str,
    request: DocumentReviewRequest,
    current_admin: AdminActor = Depends(get_current_admin),
    engine: AccountLifecycleEngine = Depends(get_lifecycle_engine),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    account = engine.get_account(account_id)
    guard(current_admin, decision_permission_for(account.role), audit, target=account_id)
    return engine.review_document(account_id, current_admin.id, request.document_name, request.note)
