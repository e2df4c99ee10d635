from typing import List, Optional
from uuid import UUID
from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.identity.decorators import has_permission
from apps.identity.jwt_auth import require_auth
from apps.identity.permissions import Permissions
from .models import AuditLog
from .dtos import AnnouncementIn, AnnouncementOut, AuditLogOut
from .audit_service import log_action, AuditAction
from .services import list_announcements, create_announcement, delete_announcement

router = Router(tags=["Governance"])


# =============================================================================
# Announcement Endpoints
# =============================================================================

@router.get("/announcements", response=List[AnnouncementOut], auth=None)
def get_announcements(request: HttpRequest):
    """Announcements for signed-in users, newest first."""
    require_auth(request)
    return list_announcements()


@router.post("/announcements", response=AnnouncementOut, auth=None)
@has_permission(Permissions.GOVERNANCE_MANAGE_ANNOUNCEMENT)
def post_announcement(request: HttpRequest, payload: AnnouncementIn):
    try:
        announcement = create_announcement(payload, request.auth_user)
    except ValueError as e:
        raise HttpError(400, str(e))

    log_action(
        action=AuditAction.CREATE_ANNOUNCEMENT,
        target_type="Announcement",
        target_id=announcement.id,
        target_label=announcement.title,
        performed_by=request.auth_user,
    )
    return announcement


@router.delete("/announcements/{announcement_id}", response={204: None}, auth=None)
@has_permission(Permissions.GOVERNANCE_MANAGE_ANNOUNCEMENT)
def remove_announcement(request: HttpRequest, announcement_id: UUID):
    if not delete_announcement(announcement_id):
        raise HttpError(404, "Announcement not found")
    log_action(
        action=AuditAction.DELETE_ANNOUNCEMENT,
        target_type="Announcement",
        target_id=announcement_id,
        performed_by=request.auth_user,
    )
    return 204, None


# =============================================================================
# Audit Log Endpoints
# =============================================================================

@router.get("/audit-logs", response=List[AuditLogOut], auth=None)
@has_permission(Permissions.GOVERNANCE_VIEW_AUDIT)
def list_audit_logs(
    request: HttpRequest,
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    limit: int = 100,
):
    """
    List audit log entries, newest first.
    Supports filtering by action name and target type.
    """
    qs = AuditLog.objects.all()
    if action:
        qs = qs.filter(action=action)
    if target_type:
        qs = qs.filter(target_type=target_type)

    return list(qs[:max(1, min(limit, 500))])  # cap at 500


@router.get("/audit-logs/{log_id}", response=AuditLogOut, auth=None)
@has_permission(Permissions.GOVERNANCE_VIEW_AUDIT)
def get_audit_log(request: HttpRequest, log_id: UUID):
    try:
        return AuditLog.objects.get(id=log_id)
    except AuditLog.DoesNotExist:
        raise HttpError(404, "Audit log not found")
