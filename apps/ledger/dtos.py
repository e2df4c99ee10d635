"""DTOs and API schemas for the Ledger app."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from ninja import Schema, Field
from ninja.orm import create_schema

from .models import Coupon


@dataclass(frozen=True)
class QuoteDTO:
    """Discounted charge for one month's rent."""
    rent: Decimal
    discount_percent: Decimal
    discount: Decimal
    amount: Decimal
    charge_minor: int
    coupon_applied: bool


@dataclass(frozen=True)
class PaymentDTO:
    id: UUID
    email: str
    apartment_id: Optional[UUID]
    month: str
    rent: Decimal
    discount: Decimal
    amount: Decimal
    coupon_code: str
    transaction_id: str
    paid_at: datetime


# =============================================================================
# Payment Schemas
# =============================================================================

class PaymentIntentIn(Schema):
    rent: Decimal = Field(..., gt=0)
    coupon_code: Optional[str] = None
    # Client-side discount hint; the server always recomputes it
    discount: Optional[Decimal] = None


class PaymentIntentOut(Schema):
    client_secret: str
    payment_intent_id: str
    amount: int
    discount_percent: Decimal
    coupon_applied: bool


class PaymentIn(Schema):
    email: str
    rent: Decimal = Field(..., gt=0)
    month: str
    transaction_id: str
    coupon_code: Optional[str] = None
    discount: Optional[Decimal] = None


class PaymentOut(Schema):
    id: UUID
    email: str
    apartment_id: Optional[UUID] = None
    month: str
    rent: Decimal
    discount: Decimal
    amount: Decimal
    coupon_code: str
    transaction_id: str
    paid_at: datetime


class PaymentResultOut(Schema):
    status: str
    message: str
    payment: Optional[PaymentOut] = None


# =============================================================================
# Coupon Schemas
# =============================================================================

CouponOut = create_schema(
    Coupon,
    name="CouponOut",
    fields=['id', 'code', 'discount_percent', 'validity', 'description'],
)


class CouponIn(Schema):
    code: str
    discount_percent: Decimal = Field(..., ge=0, le=100)
    validity: str = "Valid"
    description: str = ""


class CouponUpdateIn(Schema):
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    validity: Optional[str] = None
    description: Optional[str] = None
