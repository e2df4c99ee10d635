"""
Unit tests for ledger services.
Tests the discounted-charge arithmetic, processor verification and coupons.
"""
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from apps.core.outcomes import Outcome
from apps.identity.models import User, UserRole
from apps.ledger import services
from apps.ledger.dtos import CouponIn, CouponUpdateIn
from apps.ledger.models import Coupon, CouponValidity, Payment
from apps.ledger.payment_gateway import PaymentGatewayError


class ChargeCalculationTest(TestCase):
    """floor((rent - rent * pct / 100) * 100)"""

    def test_ten_percent_off(self):
        self.assertEqual(services.calculate_charge_minor(Decimal('1000'), Decimal('10')), 90000)

    def test_no_discount(self):
        self.assertEqual(services.calculate_charge_minor(Decimal('1234.56'), Decimal('0')), 123456)

    def test_rounds_down_fractional_cents(self):
        # 999.99 * 0.85 = 849.9915 -> 84999
        self.assertEqual(services.calculate_charge_minor(Decimal('999.99'), Decimal('15')), 84999)

    def test_full_discount(self):
        self.assertEqual(services.calculate_charge_minor(Decimal('800'), Decimal('100')), 0)


class QuoteTest(TestCase):
    def setUp(self):
        Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))
        Coupon.objects.create(code="OLD50", discount_percent=Decimal('50'), validity=CouponValidity.INVALID)

    def test_valid_coupon_applied(self):
        quote = services.quote_charge(Decimal('1000'), "save10")
        self.assertTrue(quote.coupon_applied)
        self.assertEqual(quote.charge_minor, 90000)
        self.assertEqual(quote.amount, Decimal('900.00'))
        self.assertEqual(quote.discount, Decimal('100.00'))

    def test_invalid_coupon_ignored(self):
        quote = services.quote_charge(Decimal('1000'), "OLD50")
        self.assertFalse(quote.coupon_applied)
        self.assertEqual(quote.charge_minor, 100000)

    def test_unknown_coupon_ignored(self):
        quote = services.quote_charge(Decimal('1000'), "NOPE")
        self.assertEqual(quote.discount_percent, Decimal('0'))

    def test_non_positive_rent_rejected(self):
        with self.assertRaises(ValueError):
            services.quote_charge(Decimal('0'))


def confirmed_charge(intent_id="pi_123", amount=90000, email="jane@test.com",
                     discount_percent="10.00", coupon_code="SAVE10", status="succeeded"):
    """Processor view of an intent created through create_payment_intent()."""
    return {
        "id": intent_id,
        "amount": amount,
        "status": status,
        "metadata": {
            "email": email,
            "rent": "1000.00",
            "coupon_code": coupon_code,
            "discount_percent": discount_percent,
            "charge_minor": str(amount),
        },
    }


@patch("apps.ledger.payment_gateway.retrieve_charge")
class RecordPaymentTest(TestCase):
    def setUp(self):
        self.member = User.objects.create(email="jane@test.com", role=UserRole.MEMBER)
        self.coupon = Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))

    def _record(self, **overrides):
        kwargs = dict(
            email="jane@test.com",
            rent=Decimal('1000'),
            month="March",
            transaction_id="pi_123",
            coupon_code="SAVE10",
            performed_by=self.member,
        )
        kwargs.update(overrides)
        return services.record_payment(**kwargs)

    def test_confirmed_payment_recorded(self, retrieve):
        retrieve.return_value = confirmed_charge()
        result = self._record()

        self.assertEqual(result.outcome, Outcome.OK)
        payment = Payment.objects.get()
        self.assertEqual(payment.amount, Decimal('900.00'))
        self.assertEqual(payment.discount, Decimal('100.00'))
        self.assertEqual(payment.amount, payment.rent - payment.discount)
        self.assertEqual(payment.coupon_code, "SAVE10")
        retrieve.assert_called_once_with("pi_123")

    def test_amount_mismatch(self, retrieve):
        # Charged the undiscounted amount on an intent quoted with the coupon
        retrieve.return_value = confirmed_charge(amount=100000)
        result = self._record()
        self.assertEqual(result.outcome, Outcome.AMOUNT_MISMATCH)
        self.assertFalse(Payment.objects.exists())

    def test_rent_differing_from_charge_is_mismatch(self, retrieve):
        retrieve.return_value = confirmed_charge()
        result = self._record(rent=Decimal('2000'))
        self.assertEqual(result.outcome, Outcome.AMOUNT_MISMATCH)

    def test_unconfirmed(self, retrieve):
        retrieve.return_value = confirmed_charge(status="requires_payment_method")
        result = self._record()
        self.assertEqual(result.outcome, Outcome.UNCONFIRMED)
        self.assertFalse(Payment.objects.exists())

    def test_unknown_intent_is_unconfirmed(self, retrieve):
        retrieve.return_value = {"id": "pi_123", "amount": None, "status": None, "metadata": {}}
        self.assertEqual(self._record().outcome, Outcome.UNCONFIRMED)

    def test_intent_of_another_payer_cannot_be_claimed(self, retrieve):
        User.objects.create(email="bob@test.com", role=UserRole.MEMBER)
        retrieve.return_value = confirmed_charge(intent_id="pi_bob", email="bob@test.com")

        claim = self._record(transaction_id="pi_bob")
        self.assertEqual(claim.outcome, Outcome.FORBIDDEN)
        self.assertFalse(Payment.objects.exists())

        own = self._record(email="bob@test.com", transaction_id="pi_bob")
        self.assertEqual(own.outcome, Outcome.OK)
        self.assertEqual(Payment.objects.get().email, "bob@test.com")

    def test_coupon_invalidated_after_charge(self, retrieve):
        retrieve.return_value = confirmed_charge()
        self.coupon.validity = CouponValidity.INVALID
        self.coupon.save()

        result = self._record()

        self.assertEqual(result.outcome, Outcome.OK)
        payment = Payment.objects.get()
        self.assertEqual(payment.amount, Decimal('900.00'))
        self.assertEqual(payment.coupon_code, "SAVE10")

    def test_coupon_edited_after_charge(self, retrieve):
        retrieve.return_value = confirmed_charge()
        self.coupon.discount_percent = Decimal('25')
        self.coupon.save()
        self.assertEqual(self._record().outcome, Outcome.OK)

    def test_resubmission_returns_stored_payment(self, retrieve):
        retrieve.return_value = confirmed_charge()
        first = self._record()
        second = self._record()
        self.assertEqual(second.payload.id, first.payload.id)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertEqual(retrieve.call_count, 1)

    def test_transaction_of_another_payer_forbidden(self, retrieve):
        retrieve.return_value = confirmed_charge()
        self._record()
        User.objects.create(email="bob@test.com")
        result = self._record(email="bob@test.com")
        self.assertEqual(result.outcome, Outcome.FORBIDDEN)

    def test_gateway_error_propagates(self, retrieve):
        retrieve.side_effect = PaymentGatewayError("timeout")
        with self.assertRaises(PaymentGatewayError):
            self._record()

    def test_history_filtered_by_month(self, retrieve):
        retrieve.side_effect = lambda intent_id: confirmed_charge(intent_id=intent_id)
        self._record(transaction_id="pi_1", month="March")
        self._record(transaction_id="pi_2", month="April")

        self.assertEqual(len(services.list_payments(email="jane@test.com")), 2)
        april = services.list_payments(email="jane@test.com", month="april")
        self.assertEqual([p.transaction_id for p in april], ["pi_2"])


@patch("apps.ledger.payment_gateway.create_charge_authorization")
class CreatePaymentIntentTest(TestCase):
    def setUp(self):
        Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))

    def test_quote_stored_on_intent(self, authorize):
        authorize.return_value = {"id": "pi_1", "client_secret": "s", "amount": 90000}

        services.create_payment_intent(Decimal('1000'), "save10", email="Jane@Test.com")

        amount, = authorize.call_args[0]
        metadata = authorize.call_args[1]["metadata"]
        self.assertEqual(amount, 90000)
        self.assertEqual(metadata["email"], "jane@test.com")
        self.assertEqual(metadata["coupon_code"], "SAVE10")
        self.assertEqual(Decimal(metadata["discount_percent"]), Decimal('10'))
        self.assertEqual(metadata["charge_minor"], "90000")


class CouponServiceTest(TestCase):
    def test_code_stored_upper_case(self):
        coupon = services.create_coupon(CouponIn(code=" spring20 ", discount_percent=Decimal('20')))
        self.assertEqual(coupon.code, "SPRING20")

    def test_duplicate_code_rejected(self):
        services.create_coupon(CouponIn(code="SPRING20", discount_percent=Decimal('20')))
        with self.assertRaises(ValueError):
            services.create_coupon(CouponIn(code="spring20", discount_percent=Decimal('5')))

    def test_unknown_validity_rejected(self):
        with self.assertRaises(ValueError):
            services.create_coupon(CouponIn(code="X", discount_percent=Decimal('5'), validity="Expired"))

    def test_invalidate_coupon(self):
        coupon = services.create_coupon(CouponIn(code="SPRING20", discount_percent=Decimal('20')))
        services.update_coupon(coupon.id, CouponUpdateIn(validity=CouponValidity.INVALID))
        self.assertIsNone(services.get_valid_coupon("SPRING20"))

    def test_delete(self):
        coupon = services.create_coupon(CouponIn(code="SPRING20", discount_percent=Decimal('20')))
        self.assertTrue(services.delete_coupon(coupon.id))
        self.assertFalse(services.delete_coupon(coupon.id))
