"""
Centralized audit logging service.

Use log_action() to record any state change worth tracing. A failure to
write the entry is logged and never breaks the calling request; the entry
is written in its own savepoint so an enclosing transaction stays usable.

Usage:
    from apps.governance.audit_service import log_action, AuditAction

    log_action(
        action=AuditAction.UPDATE_ROLE,
        target_type="User",
        target_id=user.id,
        target_label=user.email,
        performed_by=request.auth_user,
        context={"from": "member", "to": "user"},
    )
"""
import logging
from uuid import UUID
from typing import Optional

from django.db import transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    """
    Canonical string constants for audit log actions.
    Prevents scattered string literals and typos across apps.
    """
    # ── Registry ──────────────────────────────────────────────────────
    CREATE_APARTMENT = "CREATE_APARTMENT"
    FLIP_AVAILABILITY = "FLIP_AVAILABILITY"

    # ── Membership ────────────────────────────────────────────────────
    SUBMIT_REQUEST = "SUBMIT_REQUEST"
    ACCEPT_REQUEST = "ACCEPT_REQUEST"
    REJECT_REQUEST = "REJECT_REQUEST"
    ALLOCATE_APARTMENT = "ALLOCATE_APARTMENT"
    RELEASE_APARTMENT = "RELEASE_APARTMENT"
    UPDATE_ROLE = "UPDATE_ROLE"

    # ── Ledger ────────────────────────────────────────────────────────
    RECORD_PAYMENT = "RECORD_PAYMENT"
    CREATE_COUPON = "CREATE_COUPON"
    UPDATE_COUPON = "UPDATE_COUPON"
    DELETE_COUPON = "DELETE_COUPON"

    # ── Governance ────────────────────────────────────────────────────
    CREATE_ANNOUNCEMENT = "CREATE_ANNOUNCEMENT"
    DELETE_ANNOUNCEMENT = "DELETE_ANNOUNCEMENT"


def log_action(
    *,
    action: str,
    target_type: str,
    target_id: UUID,
    performed_by,
    target_label: str = "",
    context: Optional[dict] = None,
) -> Optional[AuditLog]:
    """
    Create an AuditLog entry.

    Args:
        action:        Action constant from AuditAction (e.g. "UPDATE_ROLE").
        target_type:   Type of the object acted on (e.g. "User").
        target_id:     Primary key of the object acted on.
        performed_by:  identity User instance, or None for system actions.
        target_label:  Optional human-readable description of the object.
        context:       Optional dict of additional metadata stored as JSON.

    Returns:
        The created AuditLog instance, or None if creation failed.
    """
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                action=action,
                target_type=target_type,
                target_id=target_id,
                target_label=target_label,
                performed_by=performed_by,
                performed_by_email=getattr(performed_by, 'email', '') or '',
                context=context or {},
            )
    except Exception:
        logger.exception(f"Failed to write audit log {action} for {target_type} {target_id}")
        return None
