"""
FastAPI dependencies for engine wiring, admin authentication and authorization.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .accounts.directory import DirectoryIngestion
from .accounts.service import AccountLifecycleEngine
from .admins.models import AdminActor
from .admins.service import AdminService
from .core.audit_models import AuditAction
from .core.audit_service import ActorDirectory, AuditLogEngine
from .core.notifications import build_notifier
from .core.permissions import AdminPermission, ensure_authorized
from .core.security import verify_token
from .database import get_db
from .exceptions import PermissionDeniedError
from .storage import AccountStore, AdminStore, EventStore

# Set up logging
logger = logging.getLogger(__name__)

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/admins/login")


def get_audit_engine(db: Session = Depends(get_db)) -> AuditLogEngine:
    directory = ActorDirectory(AccountStore(db), AdminStore(db))
    return AuditLogEngine(EventStore(db), directory=directory)


def get_lifecycle_engine(
    db: Session = Depends(get_db),
    audit: AuditLogEngine = Depends(get_audit_engine),
) -> AccountLifecycleEngine:
    accounts = AccountStore(db)
    return AccountLifecycleEngine(accounts, audit, notifier=build_notifier(accounts))


def get_directory_ingestion(
    db: Session = Depends(get_db),
    audit: AuditLogEngine = Depends(get_audit_engine),
) -> DirectoryIngestion:
    return DirectoryIngestion(AccountStore(db), audit)


def get_admin_service(
    db: Session = Depends(get_db),
    audit: AuditLogEngine = Depends(get_audit_engine),
) -> AdminService:
    return AdminService(AdminStore(db), audit)


def get_current_admin(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> AdminActor:
    """
    Get the authenticated admin actor from a bearer token.

    Raises:
        HTTPException: If the token is invalid or the admin no longer exists
    """
    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin_id = payload.get("sub")
    if not admin_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin = AdminStore(db).get_admin(admin_id)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin


def guard(admin: AdminActor, permission: AdminPermission, audit: AuditLogEngine, target: Optional[str] = None) -> None:
    """
    Check a permission at the boundary, recording every denial.

    Raises:
        PermissionDeniedError: If the admin lacks the permission or is inactive
    """
    try:
        ensure_authorized(admin, permission)
    except PermissionDeniedError:
        details = f"{admin.id} ({admin.role.value}) denied {permission.value}"
        if target:
            details += f" on {target}"
        logger.warning(f"Permission denied: {details}")
        audit.record(admin.id, AuditAction.PERMISSION_DENIED, details)
        raise


def require_permission(permission: AdminPermission):
    """
    Dependency factory to require a fixed permission.

    Args:
        permission: Permission the current admin must hold

    Returns:
        Function resolving to the authorized admin
    """
    def permission_checker(
        admin: AdminActor = Depends(get_current_admin),
        audit: AuditLogEngine = Depends(get_audit_engine),
    ) -> AdminActor:
        guard(admin, permission, audit)
        return admin
    return permission_checker
