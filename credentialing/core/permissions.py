"""
Core permissions utilities for role-based access control.

The catalog is a flat, explicit lookup table: a role grants exactly the
permissions listed for it and nothing is inferred from role names or any
hierarchy between roles.
"""
import enum
from typing import Dict, FrozenSet, List, Optional, Union

from ..exceptions import PermissionDeniedError, ValidationError


class AdminRole(str, enum.Enum):
    """
    Administrative roles assignable to internal staff.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    COMPLIANCE_ADMIN = "COMPLIANCE_ADMIN"
    REVIEWER = "REVIEWER"


class AdminPermission(str, enum.Enum):
    """
    Permission types for role-based access control.
    """
    # Registry permissions
    VIEW_PRACTITIONER_LIST = "VIEW_PRACTITIONER_LIST"
    APPROVE_REJECT_PRACTITIONER = "APPROVE_REJECT_PRACTITIONER"
    VIEW_DISPENSARY_LIST = "VIEW_DISPENSARY_LIST"
    APPROVE_REJECT_DISPENSARY = "APPROVE_REJECT_DISPENSARY"
    TERMINATE_ACCOUNTS = "TERMINATE_ACCOUNTS"

    # Oversight permissions
    ACCESS_LOGS_AUDITS = "ACCESS_LOGS_AUDITS"
    MANAGE_SYSTEM_SETTINGS = "MANAGE_SYSTEM_SETTINGS"
    MANAGE_ADMIN_ACCOUNTS = "MANAGE_ADMIN_ACCOUNTS"


# Role-based permission mapping
ROLE_PERMISSIONS: Dict[AdminRole, List[AdminPermission]] = {
    # Super admin holds every permission in the enumeration
    AdminRole.SUPER_ADMIN: list(AdminPermission),
    AdminRole.COMPLIANCE_ADMIN: [
        AdminPermission.VIEW_PRACTITIONER_LIST,
        AdminPermission.VIEW_DISPENSARY_LIST,
        AdminPermission.APPROVE_REJECT_PRACTITIONER,
        AdminPermission.APPROVE_REJECT_DISPENSARY,
        AdminPermission.ACCESS_LOGS_AUDITS,
    ],
    AdminRole.REVIEWER: [
        AdminPermission.VIEW_PRACTITIONER_LIST,
        AdminPermission.VIEW_DISPENSARY_LIST,
        AdminPermission.ACCESS_LOGS_AUDITS,
    ],
}


def get_permissions_for_role(role: Union[AdminRole, str]) -> FrozenSet[AdminPermission]:
    """
    Get permissions for a specific role.

    Args:
        role: Admin role (unknown or custom roles grant nothing)

    Returns:
        FrozenSet[AdminPermission]: Set of permissions for the role
    """
    try:
        role = AdminRole(role)
    except ValueError:
        return frozenset()
    return frozenset(ROLE_PERMISSIONS.get(role, []))


def authorize(actor, permission: Union[AdminPermission, str]) -> bool:
    """
    Decide whether an admin actor holds a permission.

    Pure and total: never raises, a denial is reported as False.

    Args:
        actor: Anything exposing a ``permissions`` collection (AdminActor)
        permission: Permission to check

    Returns:
        bool: True if the permission is in the actor's permission set
    """
    if actor is None:
        return False
    try:
        permission = AdminPermission(permission)
    except ValueError:
        return False
    granted = getattr(actor, "permissions", None) or ()
    return permission in set(granted)


def ensure_authorized(actor, permission: Union[AdminPermission, str]) -> None:
    """
    Boundary helper converting a denial into PermissionDeniedError.

    Inactive actors hold no effective permissions.

    Raises:
        PermissionDeniedError: If the actor may not perform the action
    """
    active = getattr(actor, "is_active", True)
    if not active or not authorize(actor, permission):
        value = getattr(permission, "value", permission)
        raise PermissionDeniedError(f"Missing permission: {value}")


def decision_permission_for(account_role) -> AdminPermission:
    """
    Permission required to approve or reject an applicant of the given role.

    Raises:
        ValidationError: If the role never passes through the approval workflow
    """
    value = getattr(account_role, "value", account_role)
    permission = _DECISION_PERMISSIONS.get(value)
    if permission is None:
        raise ValidationError(f"Accounts with role {value} are not subject to approval")
    return permission


def view_permission_for(account_role) -> Optional[AdminPermission]:
    """Permission required to list applicants of the given role, if any."""
    value = getattr(account_role, "value", account_role)
    return _VIEW_PERMISSIONS.get(value)


_DECISION_PERMISSIONS = {
    "PRACTITIONER": AdminPermission.APPROVE_REJECT_PRACTITIONER,
    "DISPENSARY": AdminPermission.APPROVE_REJECT_DISPENSARY,
}

_VIEW_PERMISSIONS = {
    "PRACTITIONER": AdminPermission.VIEW_PRACTITIONER_LIST,
    "DISPENSARY": AdminPermission.VIEW_DISPENSARY_LIST,
}
