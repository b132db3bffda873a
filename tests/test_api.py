"""
Tests for the HTTP endpoints: authentication, the approval workflow and audit logs.
"""
from credentialing.core.permissions import AdminRole

from .conftest import TEST_PASSWORD


def register(client, draft):
    response = client.post("/api/v1/accounts/register", json=draft)
    assert response.status_code == 201, response.text
    return response.json()


def audit_actions(client, headers, **params):
    response = client.get("/api/v1/audit-logs", headers=headers, params=params)
    assert response.status_code == 200, response.text
    return [item["action"] for item in response.json()["items"]]


# ============================================================================
# AUTHENTICATION
# ============================================================================

def test_login_returns_token_and_profile(client, make_admin):
    admin = make_admin(AdminRole.REVIEWER)
    response = client.post("/api/v1/admins/login", json={"email": admin.email, "password": TEST_PASSWORD})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["admin"]["role"] == "REVIEWER"
    assert set(data["admin"]["permissions"]) == {"VIEW_PRACTITIONER_LIST", "VIEW_DISPENSARY_LIST", "ACCESS_LOGS_AUDITS"}


def test_login_with_wrong_password(client, make_admin):
    admin = make_admin(AdminRole.REVIEWER)
    response = client.post("/api/v1/admins/login", json={"email": admin.email, "password": "nope-nope"})
    assert response.status_code == 401


def test_protected_routes_need_a_token(client):
    assert client.get("/api/v1/accounts").status_code == 401
    assert client.get("/api/v1/audit-logs").status_code == 401
    response = client.get("/api/v1/admins/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_me(client, login):
    headers = login(AdminRole.COMPLIANCE_ADMIN)
    response = client.get("/api/v1/admins/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["role"] == "COMPLIANCE_ADMIN"


def test_super_admin_creates_admins(client, login):
    headers = login(AdminRole.SUPER_ADMIN)
    response = client.post(
        "/api/v1/admins",
        headers=headers,
        json={"name": "Rahul", "email": "rahul@example.com", "role": "REVIEWER", "password": TEST_PASSWORD},
    )
    assert response.status_code == 201, response.text
    assert "APPROVE_REJECT_PRACTITIONER" not in response.json()["permissions"]

    duplicate = client.post(
        "/api/v1/admins",
        headers=headers,
        json={"name": "Rahul", "email": "rahul@example.com", "role": "REVIEWER", "password": TEST_PASSWORD},
    )
    assert duplicate.status_code == 409
    assert len(client.get("/api/v1/admins", headers=headers).json()) == 2


def test_compliance_admin_cannot_create_admins(client, login):
    headers = login(AdminRole.COMPLIANCE_ADMIN)
    response = client.post(
        "/api/v1/admins",
        headers=headers,
        json={"name": "Eve", "email": "eve@example.com", "role": "SUPER_ADMIN", "password": TEST_PASSWORD},
    )
    assert response.status_code == 403


# ============================================================================
# APPROVAL WORKFLOW
# ============================================================================

def test_registration_validation_errors(client, practitioner_draft, dispensary_draft):
    practitioner_draft.pop("name")
    assert client.post("/api/v1/accounts/register", json=practitioner_draft).status_code == 422

    dispensary_draft["documents"] = []
    assert client.post("/api/v1/accounts/register", json=dispensary_draft).status_code == 422


def test_registration_duplicate_email(client, practitioner_draft):
    register(client, practitioner_draft)
    response = client.post("/api/v1/accounts/register", json=practitioner_draft)
    assert response.status_code == 409


def test_registration_hides_credential(client, practitioner_draft):
    data = register(client, practitioner_draft)
    assert data["status"] == "PENDING"
    assert "credential_hash" not in data
    assert "password" not in data


def test_practitioner_workflow_over_http(client, login, practitioner_draft):
    compliance = login(AdminRole.COMPLIANCE_ADMIN)
    root = login(AdminRole.SUPER_ADMIN)
    account = register(client, practitioner_draft)

    response = client.post(f"/api/v1/accounts/{account['id']}/decision", headers=compliance, json={"decision": "VERIFIED"})
    assert response.status_code == 200
    assert response.json()["status"] == "VERIFIED"

    # Compliance admins may not terminate
    response = client.post(f"/api/v1/accounts/{account['id']}/terminate", headers=compliance, json={"reason": "fraud"})
    assert response.status_code == 403

    response = client.post(f"/api/v1/accounts/{account['id']}/terminate", headers=root, json={"reason": "   "})
    assert response.status_code == 422

    response = client.post(f"/api/v1/accounts/{account['id']}/terminate", headers=root, json={"reason": "license revoked"})
    assert response.status_code == 200
    assert response.json()["termination_reason"] == "license revoked"

    response = client.post(f"/api/v1/accounts/{account['id']}/decision", headers=root, json={"decision": "VERIFIED"})
    assert response.status_code == 409

    actions = audit_actions(client, root, category="PRACTITIONER")
    assert actions == ["ACCOUNT_REGISTERED"]
    actions = audit_actions(client, root, search=account["id"])
    assert actions == ["TERMINATION", "PERMISSION_DENIED", "STATUS_CHANGE", "ACCOUNT_REGISTERED"]


def test_reviewer_is_denied_and_audited(client, login, practitioner_draft):
    reviewer = login(AdminRole.REVIEWER)
    account = register(client, practitioner_draft)

    response = client.post(f"/api/v1/accounts/{account['id']}/decision", headers=reviewer, json={"decision": "VERIFIED"})

    assert response.status_code == 403
    assert "APPROVE_REJECT_PRACTITIONER" in response.json()["detail"]
    assert client.get(f"/api/v1/accounts/{account['id']}", headers=reviewer).json()["status"] == "PENDING"
    assert audit_actions(client, reviewer, search="denied")[0] == "PERMISSION_DENIED"


def test_list_accounts_respects_view_permissions(client, login, practitioner_draft, dispensary_draft):
    reviewer = login(AdminRole.REVIEWER)
    register(client, practitioner_draft)
    register(client, dispensary_draft)

    response = client.get("/api/v1/accounts", headers=reviewer)
    assert response.status_code == 200
    assert {a["role"] for a in response.json()} == {"PRACTITIONER", "DISPENSARY"}

    response = client.get("/api/v1/accounts", headers=reviewer, params={"role": "DISPENSARY", "status": "PENDING"})
    assert [a["name"] for a in response.json()] == ["City Pharmacy"]


def test_directory_lead_claim_over_http(client, login):
    root = login(AdminRole.SUPER_ADMIN)
    response = client.post(
        "/api/v1/accounts/directory",
        headers=root,
        json={"name": "Dr. Lead", "phone": "9999", "postal_code": "560001"},
    )
    assert response.status_code == 201
    lead = response.json()
    assert lead["status"] == "DIRECTORY"

    response = client.post(f"/api/v1/accounts/{lead['id']}/decision", headers=root, json={"decision": "VERIFIED"})
    assert response.status_code == 409

    response = client.post(f"/api/v1/accounts/{lead['id']}/claim", json={"email": "lead@x.com", "password": TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"

    response = client.post(f"/api/v1/accounts/{lead['id']}/decision", headers=root, json={"decision": "REJECTED"})
    assert response.json()["status"] == "REJECTED"


def test_reviewer_cannot_add_directory_leads(client, login):
    reviewer = login(AdminRole.REVIEWER)
    response = client.post(
        "/api/v1/accounts/directory",
        headers=reviewer,
        json={"name": "Dr. Lead", "phone": "9999", "postal_code": "560001"},
    )
    assert response.status_code == 403


def test_profile_edit_reset_and_document_review(client, login, practitioner_draft):
    root = login(AdminRole.SUPER_ADMIN)
    account = register(client, practitioner_draft)

    response = client.patch(f"/api/v1/accounts/{account['id']}", headers=root, json={"license_number": "MED-7"})
    assert response.status_code == 200
    assert response.json()["license_number"] == "MED-7"

    response = client.post(f"/api/v1/accounts/{account['id']}/reset-credential", headers=root)
    assert response.status_code == 200
    assert response.json()["force_credential_change"] is True

    response = client.post(
        f"/api/v1/accounts/{account['id']}/documents/review",
        headers=root,
        json={"document_name": "degree.pdf", "note": "verified with registry"},
    )
    assert response.status_code == 200

    missing = client.post(
        f"/api/v1/accounts/{account['id']}/documents/review",
        headers=root,
        json={"document_name": "nope.pdf"},
    )
    assert missing.status_code == 404
    assert audit_actions(client, root, search=account["id"])[:3] == ["DOCUMENT_REVIEW", "CREDENTIAL_RESET", "PROFILE_UPDATE"]


def test_unknown_account_is_404(client, login):
    root = login(AdminRole.SUPER_ADMIN)
    assert client.get("/api/v1/accounts/DOC-NOPE", headers=root).status_code == 404


# ============================================================================
# AUDIT LOGS
# ============================================================================

def test_audit_log_page_shape(client, login, practitioner_draft):
    root = login(AdminRole.SUPER_ADMIN)
    register(client, practitioner_draft)

    response = client.get("/api/v1/audit-logs", headers=root, params={"size": 1, "page": 1})
    assert response.status_code == 200
    data = response.json()
    assert data["size"] == 1
    assert data["has_prev"] is False
    assert data["has_next"] is True
    item = data["items"][0]
    assert item["action"] == "ACCOUNT_REGISTERED"
    assert item["actor_name"] == "Dr. A"
    assert item["actor_category"] == "PRACTITIONER"
    assert item["display_time"]


def test_audit_log_rejects_unknown_category(client, login):
    root = login(AdminRole.SUPER_ADMIN)
    response = client.get("/api/v1/audit-logs", headers=root, params={"category": "PATIENT"})
    assert response.status_code == 422


def test_dispensary_listing_claim_needs_licence(client, login):
    root = login(AdminRole.SUPER_ADMIN)
    lead = client.post(
        "/api/v1/accounts/directory",
        headers=root,
        json={"name": "Corner Pharmacy", "phone": "1234", "postal_code": "110001", "role": "DISPENSARY"},
    ).json()

    response = client.post(f"/api/v1/accounts/{lead['id']}/claim", json={"email": "corner@x.com", "password": TEST_PASSWORD})
    assert response.status_code == 422

    response = client.post(
        f"/api/v1/accounts/{lead['id']}/claim",
        json={
            "email": "corner@x.com",
            "password": TEST_PASSWORD,
            "documents": [{"type": "PHARMACY_LICENSE", "name": "licence.pdf", "url": "https://files.example.com/licence.pdf"}],
        },
    )
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"
