"""
Audit log routes - read side of the audit log engine.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..admins.models import AdminActor
from ..core.audit_service import ALL_CATEGORIES, AuditLogEngine
from ..core.permissions import AdminPermission
from ..dependencies import get_audit_engine, require_permission
from .schemas import AuditEventResponse, AuditLogPage

# Create API router
router = APIRouter(prefix="/api/v1/audit-logs", tags=["Audit Logs"])


@router.get("", response_model=AuditLogPage, summary="Query Audit Logs")
def query_audit_logs_route(
    category: str = Query(ALL_CATEGORIES, description="ALL, PRACTITIONER, DISPENSARY, ADMIN, EXTERNAL or UNKNOWN"),
    search: Optional[str] = Query(None, description="Case-insensitive text matched against actor, action and details"),
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    size: Optional[int] = Query(None, ge=1, le=500, description="Events per page"),
    current_admin: AdminActor = Depends(require_permission(AdminPermission.ACCESS_LOGS_AUDITS)),
    audit: AuditLogEngine = Depends(get_audit_engine),
):
    """
    Newest events first, filtered by actor category, then free text, then paged.
    """
    result = audit.query(category=category, search_text=search, page=page, page_size=size)
    return AuditLogPage(
        items=[AuditEventResponse.from_entry(entry) for entry in result.entries],
        total=result.total_count,
        page=result.page,
        size=result.page_size,
        pages=result.pages,
        has_next=result.page < result.pages,
        has_prev=result.page > 1,
    )
