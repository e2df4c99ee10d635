"""
Integration tests for ledger API endpoints.
The payment processor is replaced with mocks; nothing leaves the process.
"""
import json
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

from django.test import TestCase, Client

from apps.identity.jwt_auth import create_access_token
from apps.identity.models import User, UserRole
from apps.governance.audit_service import AuditAction
from apps.governance.models import AuditLog
from apps.ledger.models import Coupon, Payment
from apps.ledger.payment_gateway import PaymentGatewayError


def auth_header(email):
    return {"HTTP_AUTHORIZATION": f"Bearer {create_access_token(email)}"}


def charge(amount, email="jane@test.com", status="succeeded"):
    return {
        "id": "pi_1",
        "amount": amount,
        "status": status,
        "metadata": {"email": email, "coupon_code": "SAVE10", "discount_percent": "10.00"},
    }


class PaymentAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create(email="admin@test.com", role=UserRole.ADMIN)
        self.member = User.objects.create(email="jane@test.com", role=UserRole.MEMBER)
        self.user = User.objects.create(email="bob@test.com")
        Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))

    def _post(self, path, payload, email):
        return self.client.post(
            path, data=json.dumps(payload), content_type="application/json", **auth_header(email)
        )

    @patch("apps.ledger.payment_gateway.create_charge_authorization")
    def test_create_payment_intent_charges_discounted_amount(self, authorize):
        authorize.return_value = {"id": "pi_1", "client_secret": "pi_1_secret", "amount": 90000}

        response = self._post("/create-payment-intent", {"rent": "1000", "coupon_code": "SAVE10"}, "jane@test.com")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["amount"], 90000)
        self.assertEqual(body["client_secret"], "pi_1_secret")
        self.assertTrue(body["coupon_applied"])
        self.assertEqual(authorize.call_args[0][0], 90000)

    @patch("apps.ledger.payment_gateway.create_charge_authorization")
    def test_client_discount_is_ignored(self, authorize):
        authorize.return_value = {"id": "pi_1", "client_secret": "s", "amount": 100000}
        response = self._post("/create-payment-intent", {"rent": "1000", "discount": "50"}, "jane@test.com")
        self.assertEqual(response.json()["amount"], 100000)

    def test_create_payment_intent_requires_auth(self):
        response = self.client.post(
            "/create-payment-intent", data=json.dumps({"rent": "1000"}), content_type="application/json"
        )
        self.assertEqual(response.status_code, 401)

    @patch("apps.ledger.payment_gateway.create_charge_authorization")
    def test_gateway_failure_is_502(self, authorize):
        authorize.side_effect = PaymentGatewayError("down")
        response = self._post("/create-payment-intent", {"rent": "1000"}, "jane@test.com")
        self.assertEqual(response.status_code, 502)

    @patch("apps.ledger.payment_gateway.retrieve_charge")
    def test_record_payment(self, retrieve):
        retrieve.return_value = charge(90000)
        response = self._post(
            "/payments",
            {"email": "jane@test.com", "rent": "1000", "month": "May", "transaction_id": "pi_1", "coupon_code": "SAVE10"},
            "jane@test.com",
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(Decimal(body["payment"]["amount"]), Decimal('900.00'))
        self.assertTrue(AuditLog.objects.filter(action=AuditAction.RECORD_PAYMENT).exists())

    @patch("apps.ledger.payment_gateway.retrieve_charge")
    def test_record_payment_amount_mismatch(self, retrieve):
        retrieve.return_value = charge(50000)
        response = self._post(
            "/payments",
            {"email": "jane@test.com", "rent": "1000", "month": "May", "transaction_id": "pi_1", "coupon_code": "SAVE10"},
            "jane@test.com",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "amount_mismatch")
        self.assertFalse(Payment.objects.exists())

    @patch("apps.ledger.payment_gateway.retrieve_charge")
    def test_record_payment_of_another_payers_intent_forbidden(self, retrieve):
        retrieve.return_value = charge(90000, email="bob@test.com")
        response = self._post(
            "/payments",
            {"email": "jane@test.com", "rent": "1000", "month": "May", "transaction_id": "pi_1", "coupon_code": "SAVE10"},
            "jane@test.com",
        )
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Payment.objects.exists())

    def test_record_payment_for_someone_else_forbidden(self):
        response = self._post(
            "/payments",
            {"email": "jane@test.com", "rent": "1000", "month": "May", "transaction_id": "pi_1"},
            "bob@test.com",
        )
        self.assertEqual(response.status_code, 403)

    def _payment(self, email, month, transaction_id):
        return Payment.objects.create(
            email=email, month=month, rent=Decimal('1000'), amount=Decimal('1000'), transaction_id=transaction_id,
        )

    def test_payments_self_or_admin(self):
        self._payment("jane@test.com", "May", "pi_1")

        response = self.client.get("/payments/jane@test.com", **auth_header("jane@test.com"))
        self.assertEqual(len(response.json()), 1)
        response = self.client.get("/payments/jane@test.com", **auth_header("admin@test.com"))
        self.assertEqual(len(response.json()), 1)
        response = self.client.get("/payments/jane@test.com", **auth_header("bob@test.com"))
        self.assertEqual(response.status_code, 403)

    def test_payment_history_month_filter(self):
        self._payment("jane@test.com", "May", "pi_1")
        self._payment("jane@test.com", "June", "pi_2")

        response = self.client.get("/payments-history/jane@test.com?month=June", **auth_header("jane@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([p["transaction_id"] for p in response.json()], ["pi_2"])

    def test_payment_history_requires_member(self):
        response = self.client.get("/payments-history/bob@test.com", **auth_header("bob@test.com"))
        self.assertEqual(response.status_code, 403)


class CouponAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        User.objects.create(email="admin@test.com", role=UserRole.ADMIN)
        User.objects.create(email="bob@test.com")

    def test_listing_is_public(self):
        Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))
        response = self.client.get("/coupons")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["code"], "SAVE10")

    def test_create_requires_admin(self):
        payload = json.dumps({"code": "new5", "discount_percent": "5"})
        response = self.client.post("/coupons", data=payload, content_type="application/json", **auth_header("bob@test.com"))
        self.assertEqual(response.status_code, 403)

        response = self.client.post("/coupons", data=payload, content_type="application/json", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["code"], "NEW5")

    def test_percent_out_of_range(self):
        response = self.client.post(
            "/coupons", data=json.dumps({"code": "BIG", "discount_percent": "150"}),
            content_type="application/json", **auth_header("admin@test.com"),
        )
        self.assertEqual(response.status_code, 422)

    def test_update_and_delete(self):
        coupon = Coupon.objects.create(code="SAVE10", discount_percent=Decimal('10'))

        response = self.client.patch(
            f"/coupons/{coupon.id}", data=json.dumps({"validity": "Invalid"}),
            content_type="application/json", **auth_header("admin@test.com"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["validity"], "Invalid")

        response = self.client.delete(f"/coupons/{coupon.id}", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 204)
        self.assertTrue(AuditLog.objects.filter(action=AuditAction.DELETE_COUPON).exists())

    def test_update_missing(self):
        response = self.client.patch(
            f"/coupons/{uuid4()}", data=json.dumps({"validity": "Invalid"}),
            content_type="application/json", **auth_header("admin@test.com"),
        )
        self.assertEqual(response.status_code, 404)
