"""
AdminActor Model - Internal staff identities with a role-derived permission set.
"""
from sqlalchemy import Column, String, Boolean, DateTime, Enum, JSON
from ..database import Base, utcnow
from ..core.permissions import AdminRole, AdminPermission

class AdminActor(Base):
    """
    AdminActor Model

    Fields:
    - id: Prefixed string identifier
    - name: Display name
    - email: Login email (lowercased, unique)
    - role: Assigned admin role
    - granted_permissions: Snapshot of the catalog entry for the role at creation
    - is_active: Inactive actors hold no effective permissions
    - credential_hash: Hashed login credential
    - created_at: Creation timestamp
    - created_by: Id of the actor that created this admin
    """
    __tablename__ = "admin_actors"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(AdminRole), nullable=False)
    granted_permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    credential_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(String, nullable=True)

    @property
    def permissions(self) -> frozenset:
        """Permission set fixed at assignment time."""
        return frozenset(AdminPermission(p) for p in (self.granted_permissions or []))

    def __repr__(self):
        return f"<AdminActor(id={self.id}, role={self.role})>"
