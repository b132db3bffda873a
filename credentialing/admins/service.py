"""
Admin service - creation, authentication and bootstrap of admin actors.
"""
import logging
import uuid
from typing import List, Optional

from ..config import settings
from ..core.audit_models import AuditAction, SYSTEM_ACTOR_ID
from ..core.audit_service import AuditLogEngine
from ..core.permissions import AdminRole, get_permissions_for_role
from ..core.security import hash_password, verify_password
from ..database import utcnow
from ..exceptions import DuplicateError, InvalidCredentialsError, NotFoundError, ValidationError
from .models import AdminActor

# Set up logging
logger = logging.getLogger(__name__)


class AdminService:
    """
    Args:
        admin_store: AdminStore used for admin actor persistence
        audit: AuditLogEngine receiving ADMIN_CREATED and login events
    """

    def __init__(self, admin_store, audit: AuditLogEngine):
        self.admins = admin_store
        self.audit = audit

    def create_admin(
        self,
        name: str,
        email: str,
        role: AdminRole,
        password: str,
        created_by: Optional[str] = None,
    ) -> AdminActor:
        """
        Create an admin actor whose permissions are exactly the catalog entry
        for its role at this moment.

        Raises:
            ValidationError: If name, email or password is missing, or the role
                is not an admin role
            DuplicateError: If the email is already used by another admin
        """
        try:
            role = AdminRole(role)
        except ValueError:
            raise ValidationError(f"Unknown admin role: {role}")
        if not name or not name.strip() or not email or not password:
            raise ValidationError("Admin name, email and password are required")
        email = email.strip().lower()
        if self.admins.get_by_email(email):
            logger.warning(f"Admin creation failed: Email {email} already registered")
            raise DuplicateError(f"An admin with email {email} already exists")

        permissions = sorted(p.value for p in get_permissions_for_role(role))
        admin = AdminActor(
            id=f"ADM-{uuid.uuid4().hex[:12].upper()}",
            name=name.strip(),
            email=email,
            role=role,
            granted_permissions=permissions,
            is_active=True,
            credential_hash=hash_password(password),
            created_at=utcnow(),
            created_by=created_by or SYSTEM_ACTOR_ID,
        )
        admin = self.admins.add_admin(admin)
        logger.info(f"Admin {admin.id} created with role {admin.role.value}")
        self.audit.record(
            created_by or SYSTEM_ACTOR_ID,
            AuditAction.ADMIN_CREATED,
            f"Admin {admin.name} ({admin.id}) created with role {admin.role.value}; "
            f"permissions: {', '.join(permissions) or 'none'}",
        )
        return admin

    def authenticate(self, email: str, password: str) -> AdminActor:
        """
        Check an admin login, auditing both outcomes.

        Raises:
            InvalidCredentialsError: On unknown email, wrong password or inactive admin
        """
        email = (email or "").strip().lower()
        admin = self.admins.get_by_email(email) if email else None
        if admin is None or not admin.is_active or not verify_password(password or "", admin.credential_hash):
            logger.warning(f"Login failed for {email}")
            self.audit.record(
                admin.id if admin else SYSTEM_ACTOR_ID,
                AuditAction.LOGIN_FAILED,
                f"Failed admin login for {email}",
            )
            raise InvalidCredentialsError()
        logger.info(f"Login successful: Admin {admin.id} ({email})")
        self.audit.record(admin.id, AuditAction.LOGIN_SUCCESS, f"Admin login for {email}")
        return admin

    def get_admin(self, admin_id: str) -> AdminActor:
        admin = self.admins.get_admin(admin_id)
        if admin is None:
            raise NotFoundError(f"Admin {admin_id} not found")
        return admin

    def list_admins(self) -> List[AdminActor]:
        return self.admins.load_all_admins()

    def bootstrap_super_admin(self) -> Optional[AdminActor]:
        """
        Create the first SUPER_ADMIN from settings when no admin exists yet.

        Returns:
            The created admin, or None when bootstrap is not applicable
        """
        if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
            logger.info("Bootstrap admin credentials not configured; skipping")
            return None
        if self.admins.count_admins() > 0:
            logger.info("Admin accounts already exist; bootstrap skipped")
            return None
        logger.info("Creating bootstrap super admin")
        return self.create_admin(
            name=settings.bootstrap_admin_name,
            email=settings.bootstrap_admin_email,
            role=AdminRole.SUPER_ADMIN,
            password=settings.bootstrap_admin_password,
            created_by=SYSTEM_ACTOR_ID,
        )
