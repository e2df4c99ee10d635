"""
API Router for the Ledger app.

Payment intents, payment recording and history, and coupon management.
"""
from typing import List, Optional
from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.governance.audit_service import log_action, AuditAction
from apps.identity.decorators import has_permission, ensure_self_or_permission
from apps.identity.jwt_auth import require_auth
from apps.identity.permissions import Permissions
from .dtos import (
    PaymentIntentIn, PaymentIntentOut, PaymentIn, PaymentOut, PaymentResultOut,
    CouponIn, CouponUpdateIn, CouponOut,
)
from .payment_gateway import PaymentGatewayError
from . import services

router = Router(tags=["Ledger"])


# =============================================================================
# Payment Endpoints
# =============================================================================

@router.post("/create-payment-intent", response=PaymentIntentOut, auth=None)
def create_payment_intent(request: HttpRequest, payload: PaymentIntentIn):
    """
    Authorize the discounted charge for one month's rent.

    The discount comes from ``coupon_code``; a client supplied ``discount``
    is ignored.
    """
    user = require_auth(request)
    try:
        return services.create_payment_intent(payload.rent, payload.coupon_code, email=user.email)
    except ValueError as e:
        raise HttpError(400, str(e))
    except PaymentGatewayError as e:
        raise HttpError(502, f"Payment processor error: {e}")


@router.post("/payments", response={200: PaymentResultOut, 403: PaymentResultOut}, auth=None)
def create_payment(request: HttpRequest, payload: PaymentIn):
    """
    Record a confirmed payment for the caller.

    Returns ``unconfirmed`` or ``amount_mismatch`` when the processor does not
    back the submitted payment.
    """
    user = require_auth(request)
    ensure_self_or_permission(user, payload.email, Permissions.LEDGER_VIEW_ALL_PAYMENTS)

    try:
        result = services.record_payment(
            email=payload.email,
            rent=payload.rent,
            month=payload.month,
            transaction_id=payload.transaction_id,
            coupon_code=payload.coupon_code,
            performed_by=user,
        )
    except ValueError as e:
        raise HttpError(400, str(e))
    except PaymentGatewayError as e:
        raise HttpError(502, f"Payment processor error: {e}")

    return result.status_code, {
        "status": result.outcome.value,
        "message": result.message,
        "payment": result.payload,
    }


@router.get("/payments/{email}", response=List[PaymentOut], auth=None)
def get_payments(request: HttpRequest, email: str):
    """All payments made by ``email``, newest first. Self or admin."""
    user = require_auth(request)
    ensure_self_or_permission(user, email, Permissions.LEDGER_VIEW_ALL_PAYMENTS)
    return services.list_payments(email=email)


@router.get("/payments-history/{email}", response=List[PaymentOut], auth=None)
@has_permission(Permissions.LEDGER_VIEW_PAYMENT_HISTORY)
def get_payment_history(request: HttpRequest, email: str, month: Optional[str] = None):
    """
    Member payment history, optionally narrowed to one billing month.
    """
    ensure_self_or_permission(request.auth_user, email, Permissions.LEDGER_VIEW_ALL_PAYMENTS)
    return services.list_payments(email=email, month=month)


# =============================================================================
# Coupon Endpoints
# =============================================================================

@router.get("/coupons", response=List[CouponOut], auth=None)
def get_coupons(request: HttpRequest):
    """Published coupons."""
    return services.list_coupons()


@router.post("/coupons", response=CouponOut, auth=None)
@has_permission(Permissions.LEDGER_MANAGE_COUPON)
def create_coupon(request: HttpRequest, payload: CouponIn):
    try:
        coupon = services.create_coupon(payload)
    except ValueError as e:
        raise HttpError(400, str(e))

    log_action(
        action=AuditAction.CREATE_COUPON,
        target_type="Coupon",
        target_id=coupon.id,
        target_label=coupon.code,
        performed_by=request.auth_user,
        context={"discount_percent": str(coupon.discount_percent)},
    )
    return coupon


@router.patch("/coupons/{coupon_id}", response=CouponOut, auth=None)
@has_permission(Permissions.LEDGER_MANAGE_COUPON)
def update_coupon(request: HttpRequest, coupon_id: UUID, payload: CouponUpdateIn):
    try:
        coupon = services.update_coupon(coupon_id, payload)
    except ValueError as e:
        raise HttpError(400, str(e))
    if not coupon:
        raise HttpError(404, "Coupon not found")

    log_action(
        action=AuditAction.UPDATE_COUPON,
        target_type="Coupon",
        target_id=coupon.id,
        target_label=coupon.code,
        performed_by=request.auth_user,
        context={k: str(v) for k, v in payload.dict(exclude_unset=True, exclude_none=True).items()},
    )
    return coupon


@router.delete("/coupons/{coupon_id}", response={204: None}, auth=None)
@has_permission(Permissions.LEDGER_MANAGE_COUPON)
def delete_coupon(request: HttpRequest, coupon_id: UUID):
    if not services.delete_coupon(coupon_id):
        raise HttpError(404, "Coupon not found")

    log_action(
        action=AuditAction.DELETE_COUPON,
        target_type="Coupon",
        target_id=coupon_id,
        performed_by=request.auth_user,
    )
    return 204, None
