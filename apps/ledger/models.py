import uuid
from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class CouponValidity(models.TextChoices):
    VALID = 'Valid', 'Valid'
    INVALID = 'Invalid', 'Invalid'


class Coupon(models.Model):
    """
    Percentage discount applied to a rent payment.

    Only VALID coupons reduce the charge; an INVALID code quotes as 0%.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=50, unique=True, help_text="Stored upper-case")
    discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
    )
    validity = models.CharField(
        max_length=10,
        choices=CouponValidity.choices,
        default=CouponValidity.VALID,
    )
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']

    def __str__(self):
        return f"{self.code} ({self.discount_percent}%)"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_valid(self) -> bool:
        return self.validity == CouponValidity.VALID


class Payment(models.Model):
    """
    Append-only record of a confirmed rent payment.

    amount = rent - discount, where discount is recomputed server-side from
    the coupon at the time of payment.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(db_index=True)
    apartment_id = models.UUIDField(null=True, blank=True, help_text="Registry Apartment id")
    month = models.CharField(max_length=20, help_text="Billing month, e.g. 'January'")

    rent = models.DecimalField(max_digits=10, decimal_places=2)
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    coupon_code = models.CharField(max_length=50, blank=True)

    transaction_id = models.CharField(max_length=255, unique=True, help_text="Processor payment intent id")
    paid_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-paid_at']

    def __str__(self):
        return f"{self.email} - {self.month} ({self.amount})"
