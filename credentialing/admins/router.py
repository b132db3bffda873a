"""
Admin routes - login and management of admin actors.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from ..core.permissions import AdminPermission
from ..core.security import create_access_token
from ..dependencies import get_admin_service, get_current_admin, require_permission
from .models import AdminActor
from .schemas import AdminCreate, AdminLogin, AdminResponse, TokenResponse
from .service import AdminService

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/v1/admins", tags=["Admins"])


@router.post("/login", response_model=TokenResponse, summary="Admin Login")
def login_route(login_data: AdminLogin, service: AdminService = Depends(get_admin_service)):
    """
    Admin login endpoint.

    Returns:
        TokenResponse with a bearer token and the admin profile

    Raises:
        InvalidCredentialsError: If the credentials do not match an active admin
    """
    admin = service.authenticate(login_data.email, login_data.password)
    token = create_access_token({"sub": admin.id, "role": admin.role.value})
    return TokenResponse(access_token=token, admin=AdminResponse.model_validate(admin))


@router.post("", response_model=AdminResponse, status_code=status.HTTP_201_CREATED, summary="Create Admin")
def create_admin_route(
    admin_data: AdminCreate,
    current_admin: AdminActor = Depends(require_permission(AdminPermission.MANAGE_ADMIN_ACCOUNTS)),
    service: AdminService = Depends(get_admin_service),
):
    """Create an admin actor with the permissions of the requested role."""
    return service.create_admin(
        name=admin_data.name,
        email=admin_data.email,
        role=admin_data.role,
        password=admin_data.password,
        created_by=current_admin.id,
    )


@router.get("", response_model=List[AdminResponse], summary="List Admins")
def list_admins_route(
    current_admin: AdminActor = Depends(require_permission(AdminPermission.MANAGE_ADMIN_ACCOUNTS)),
    service: AdminService = Depends(get_admin_service),
):
    return service.list_admins()


@router.get("/me", response_model=AdminResponse, summary="Current Admin")
def me_route(current_admin: AdminActor = Depends(get_current_admin)):
    return current_admin
