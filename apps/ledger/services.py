"""
Core services for the Ledger app.

Rent quotes, processor-confirmed payment recording and coupon management.
All money is Decimal; the processor is charged in integer minor units.
"""
import logging
from decimal import Decimal, ROUND_FLOOR
from typing import List, Optional
from uuid import UUID

from django.db import IntegrityError, transaction

from apps.core.outcomes import Outcome, Result
from apps.governance.audit_service import log_action, AuditAction
from apps.identity.services import get_user_dto, normalize_email
from . import payment_gateway
from .dtos import QuoteDTO, PaymentDTO, CouponIn, CouponUpdateIn
from .models import Coupon, CouponValidity, Payment

logger = logging.getLogger(__name__)

HUNDRED = Decimal('100')
CENT = Decimal('0.01')


# =============================================================================
# Quotes
# =============================================================================

def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def get_valid_coupon(code: Optional[str]) -> Optional[Coupon]:
    """The coupon for ``code`` if it exists and is marked valid."""
    code = normalize_code(code)
    if not code:
        return None
    return Coupon.objects.filter(code=code, validity=CouponValidity.VALID).first()


def calculate_charge_minor(rent: Decimal, discount_percent: Decimal) -> int:
    """
    floor((rent - rent * pct / 100) * 100)

    >>> calculate_charge_minor(Decimal('1000'), Decimal('10'))
    90000
    """
    rent = Decimal(rent)
    discounted = rent - rent * Decimal(discount_percent) / HUNDRED
    return int((discounted * HUNDRED).to_integral_value(rounding=ROUND_FLOOR))


def quote_charge(rent: Decimal, coupon_code: Optional[str] = None) -> QuoteDTO:
    """
    Price one month's rent, applying ``coupon_code`` when it names a valid
    coupon. Unknown or invalid codes quote at 0%.
    """
    if rent is None or Decimal(rent) <= 0:
        raise ValueError("Rent must be positive")

    rent = Decimal(rent)
    coupon = get_valid_coupon(coupon_code)
    percent = coupon.discount_percent if coupon else Decimal('0')

    charge_minor = calculate_charge_minor(rent, percent)
    amount = (Decimal(charge_minor) / HUNDRED).quantize(CENT)
    return QuoteDTO(
        rent=rent.quantize(CENT),
        discount_percent=percent,
        discount=(rent - amount).quantize(CENT),
        amount=amount,
        charge_minor=charge_minor,
        coupon_applied=coupon is not None,
    )


def create_payment_intent(rent: Decimal, coupon_code: Optional[str], email: str) -> dict:
    """
    Authorize the quoted charge with the processor.

    The quote is stored on the intent so that recording the payment later
    checks against the terms the payer was charged under, even if the coupon
    changes in between. Raises PaymentGatewayError when the processor call
    fails.
    """
    quote = quote_charge(rent, coupon_code)
    intent = payment_gateway.create_charge_authorization(
        quote.charge_minor,
        metadata={
            "email": normalize_email(email),
            "rent": str(quote.rent),
            "coupon_code": normalize_code(coupon_code) if quote.coupon_applied else "",
            "discount_percent": str(quote.discount_percent),
            "charge_minor": str(quote.charge_minor),
        },
    )
    logger.info(f"PaymentIntent {intent['id']} created for {email}: {quote.charge_minor} minor units")
    return {
        "client_secret": intent["client_secret"],
        "payment_intent_id": intent["id"],
        "amount": quote.charge_minor,
        "discount_percent": quote.discount_percent,
        "coupon_applied": quote.coupon_applied,
    }


# =============================================================================
# Payments
# =============================================================================

def _to_payment_dto(payment: Payment) -> PaymentDTO:
    return PaymentDTO(
        id=payment.id,
        email=payment.email,
        apartment_id=payment.apartment_id,
        month=payment.month,
        rent=payment.rent,
        discount=payment.discount,
        amount=payment.amount,
        coupon_code=payment.coupon_code,
        transaction_id=payment.transaction_id,
        paid_at=payment.paid_at,
    )


def record_payment(
    email: str,
    rent: Decimal,
    month: str,
    transaction_id: str,
    coupon_code: Optional[str] = None,
    performed_by=None,
) -> Result:
    """
    Store a payment after the processor confirms it.

    Nothing the client sends about the price is trusted. The intent must
    belong to ``email`` (FORBIDDEN) and have succeeded (UNCONFIRMED). The
    charged amount must equal the charge for ``rent`` under the discount
    recorded on the intent when it was created (AMOUNT_MISMATCH), so later
    coupon edits do not affect payments already made. The stored amount is
    the amount the processor confirmed. Re-submitting the same transaction
    id returns the stored payment.
    """
    email = normalize_email(email)
    if not month or not month.strip():
        raise ValueError("Month is required")
    if not transaction_id:
        raise ValueError("Transaction id is required")
    if rent is None or Decimal(rent) <= 0:
        raise ValueError("Rent must be positive")
    rent = Decimal(rent).quantize(CENT)

    existing = Payment.objects.filter(transaction_id=transaction_id).first()
    if existing:
        if existing.email != email:
            return Result(Outcome.FORBIDDEN)
        return Result(Outcome.OK, _to_payment_dto(existing))

    charge = payment_gateway.retrieve_charge(transaction_id)
    terms = charge.get("metadata") or {}

    if charge["status"] is None:
        logger.warning(f"Payment {transaction_id} for {email} is unknown to the processor")
        return Result(Outcome.UNCONFIRMED)
    if normalize_email(terms.get("email")) != email:
        logger.warning(f"Payment {transaction_id} claimed by {email} was authorized for another payer")
        return Result(Outcome.FORBIDDEN)
    if charge["status"] != payment_gateway.SUCCEEDED:
        logger.warning(f"Payment {transaction_id} for {email} not confirmed (status={charge['status']})")
        return Result(Outcome.UNCONFIRMED)

    if terms.get("discount_percent") is not None:
        percent = Decimal(terms["discount_percent"])
        applied_code = terms.get("coupon_code", "")
    else:
        quote = quote_charge(rent, coupon_code)
        percent = quote.discount_percent
        applied_code = normalize_code(coupon_code) if quote.coupon_applied else ""

    expected_minor = calculate_charge_minor(rent, percent)
    if charge["amount"] != expected_minor:
        logger.warning(
            f"Payment {transaction_id} for {email} charged {charge['amount']}, expected {expected_minor}"
        )
        return Result(Outcome.AMOUNT_MISMATCH)

    amount = (Decimal(charge["amount"]) / HUNDRED).quantize(CENT)
    user = get_user_dto(email)
    try:
        with transaction.atomic():
            payment = Payment.objects.create(
                email=email,
                apartment_id=user.apartment_id if user else None,
                month=month.strip(),
                rent=rent,
                discount=rent - amount,
                amount=amount,
                coupon_code=applied_code,
                transaction_id=transaction_id,
            )
    except IntegrityError:
        # Concurrent submission of the same intent
        payment = Payment.objects.get(transaction_id=transaction_id)
        return Result(Outcome.OK, _to_payment_dto(payment))

    logger.info(f"Recorded payment {payment.id} from {email} for {payment.month}: {payment.amount}")
    log_action(
        action=AuditAction.RECORD_PAYMENT,
        target_type="Payment",
        target_id=payment.id,
        target_label=f"{email} - {payment.month}",
        performed_by=performed_by,
        context={"amount": str(payment.amount), "coupon_code": payment.coupon_code},
    )
    return Result(Outcome.OK, _to_payment_dto(payment))


def list_payments(email: Optional[str] = None, month: Optional[str] = None) -> List[PaymentDTO]:
    """Payments newest first, optionally for one payer and/or month."""
    queryset = Payment.objects.all()
    if email:
        queryset = queryset.filter(email=normalize_email(email))
    if month:
        queryset = queryset.filter(month__iexact=month.strip())
    return [_to_payment_dto(p) for p in queryset.order_by('-paid_at')]


# =============================================================================
# Coupons
# =============================================================================

def _validate_validity(validity: str) -> None:
    if validity not in CouponValidity.values:
        raise ValueError(f"Validity must be one of {', '.join(CouponValidity.values)}")


def list_coupons() -> List[Coupon]:
    return list(Coupon.objects.all())


def create_coupon(payload: CouponIn) -> Coupon:
    code = normalize_code(payload.code)
    if not code:
        raise ValueError("Coupon code is required")
    _validate_validity(payload.validity)
    if Coupon.objects.filter(code=code).exists():
        raise ValueError(f"Coupon '{code}' already exists")

    return Coupon.objects.create(
        code=code,
        discount_percent=payload.discount_percent,
        validity=payload.validity,
        description=payload.description,
    )


def update_coupon(coupon_id: UUID, payload: CouponUpdateIn) -> Optional[Coupon]:
    coupon = Coupon.objects.filter(id=coupon_id).first()
    if not coupon:
        return None

    data = payload.dict(exclude_unset=True)
    if data.get('validity') is not None:
        _validate_validity(data['validity'])
    for field, value in data.items():
        if value is not None:
            setattr(coupon, field, value)
    coupon.save()
    return coupon


def delete_coupon(coupon_id: UUID) -> bool:
    deleted, _ = Coupon.objects.filter(id=coupon_id).delete()
    return deleted > 0
