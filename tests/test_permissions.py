"""
Tests for the permission catalog and the authorization guard.
"""
import pytest
from types import SimpleNamespace

from credentialing.core.permissions import (
    AdminPermission as P,
    AdminRole,
    ROLE_PERMISSIONS,
    authorize,
    decision_permission_for,
    ensure_authorized,
    get_permissions_for_role,
    view_permission_for,
)
from credentialing.exceptions import PermissionDeniedError, ValidationError

CATALOG = {
    AdminRole.SUPER_ADMIN: set(P),
    AdminRole.COMPLIANCE_ADMIN: {
        P.VIEW_PRACTITIONER_LIST,
        P.VIEW_DISPENSARY_LIST,
        P.APPROVE_REJECT_PRACTITIONER,
        P.APPROVE_REJECT_DISPENSARY,
        P.ACCESS_LOGS_AUDITS,
    },
    AdminRole.REVIEWER: {
        P.VIEW_PRACTITIONER_LIST,
        P.VIEW_DISPENSARY_LIST,
        P.ACCESS_LOGS_AUDITS,
    },
}


def actor_for(role, is_active=True):
    return SimpleNamespace(role=role, permissions=get_permissions_for_role(role), is_active=is_active)


@pytest.mark.parametrize("role", list(AdminRole))
@pytest.mark.parametrize("permission", list(P))
def test_authorize_matches_catalog(role, permission):
    assert authorize(actor_for(role), permission) == (permission in CATALOG[role])


def test_catalog_table_is_explicit():
    assert {role: set(perms) for role, perms in ROLE_PERMISSIONS.items()} == CATALOG


def test_super_admin_holds_every_permission():
    assert get_permissions_for_role(AdminRole.SUPER_ADMIN) == frozenset(P)


def test_unknown_role_grants_nothing():
    assert get_permissions_for_role("REGIONAL_MANAGER") == frozenset()
    actor = SimpleNamespace(role="REGIONAL_MANAGER", permissions=get_permissions_for_role("REGIONAL_MANAGER"))
    assert not any(authorize(actor, p) for p in P)


def test_authorize_is_total():
    assert authorize(None, P.ACCESS_LOGS_AUDITS) is False
    assert authorize(actor_for(AdminRole.SUPER_ADMIN), "NOT_A_PERMISSION") is False
    assert authorize(SimpleNamespace(), P.ACCESS_LOGS_AUDITS) is False


def test_reviewer_can_view_but_not_approve():
    reviewer = actor_for(AdminRole.REVIEWER)
    assert authorize(reviewer, P.VIEW_PRACTITIONER_LIST)
    assert not authorize(reviewer, P.APPROVE_REJECT_PRACTITIONER)
    with pytest.raises(PermissionDeniedError):
        ensure_authorized(reviewer, P.APPROVE_REJECT_PRACTITIONER)


def test_inactive_actor_is_denied():
    with pytest.raises(PermissionDeniedError):
        ensure_authorized(actor_for(AdminRole.SUPER_ADMIN, is_active=False), P.ACCESS_LOGS_AUDITS)


def test_ensure_authorized_passes_silently():
    assert ensure_authorized(actor_for(AdminRole.COMPLIANCE_ADMIN), P.APPROVE_REJECT_DISPENSARY) is None


def test_decision_and_view_permissions_by_account_role():
    assert decision_permission_for("PRACTITIONER") == P.APPROVE_REJECT_PRACTITIONER
    assert decision_permission_for("DISPENSARY") == P.APPROVE_REJECT_DISPENSARY
    assert view_permission_for("DISPENSARY") == P.VIEW_DISPENSARY_LIST
    assert view_permission_for("STAFF") is None
    with pytest.raises(ValidationError):
        decision_permission_for("STAFF")
