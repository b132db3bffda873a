"""
Admin Schemas - Pydantic models for admin actor management and login.
"""
from typing import List
from pydantic import AliasChoices, BaseModel, EmailStr, Field
from datetime import datetime
from ..core.permissions import AdminRole, AdminPermission

class AdminCreate(BaseModel):
    """
    Admin Creation Schema - Used by a super admin to add staff

    Permissions are not accepted here; they are derived from the role.
    """
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: AdminRole
    password: str = Field(..., min_length=8)

class AdminLogin(BaseModel):
    """Admin login credentials."""
    email: EmailStr
    password: str

class AdminResponse(BaseModel):
    """
    Admin Response Schema

    Fields:
    - id, name, email, role: Identity
    - permissions: Effective permission set fixed at creation
    - is_active: Whether the actor may act at all
    """
    id: str
    name: str
    email: str
    role: AdminRole
    permissions: List[AdminPermission] = Field(validation_alias=AliasChoices("granted_permissions", "permissions"))
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    """Bearer token returned on successful login."""
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse
