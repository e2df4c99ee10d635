"""
Integration tests for membership API endpoints.
Tests outcome mapping, permissions and the request-to-member flow.
"""
import json
from decimal import Decimal
from uuid import uuid4

from django.test import TestCase, Client

from apps.identity.jwt_auth import create_access_token
from apps.identity.models import User, UserRole
from apps.registry.models import Apartment, BookingStatus
from apps.membership.models import ApartmentRequest, Allocation, RequestStatus


def auth_header(email):
    return {"HTTP_AUTHORIZATION": f"Bearer {create_access_token(email)}"}


class MembershipAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create(email="admin@test.com", role=UserRole.ADMIN)
        self.user = User.objects.create(email="jane@test.com", name="Jane")
        self.apartment = Apartment.objects.create(
            block_name="A", floor_no=1, apartment_no="101", rent=Decimal("1000"),
        )

    def _json(self, method, path, payload, email):
        return getattr(self.client, method)(
            path, data=json.dumps(payload), content_type="application/json", **auth_header(email)
        )

    def _submit(self, email="jane@test.com", apartment_id=None):
        return self._json(
            "post", "/request-apartment",
            {"email": email, "apartment_id": str(apartment_id or self.apartment.id)},
            "jane@test.com",
        )

    def test_request_requires_auth(self):
        response = self.client.post(
            "/request-apartment",
            data=json.dumps({"email": "jane@test.com", "apartment_id": str(self.apartment.id)}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 401)

    def test_request_created(self):
        response = self._submit()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["request"]["status"], RequestStatus.PENDING)

    def test_duplicate_request_reports_outcome(self):
        self._submit()
        response = self._submit()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "already_requested")
        self.assertIsNone(response.json()["request"])

    def test_identity_mismatch_is_403(self):
        response = self._submit(email="other@test.com")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["status"], "forbidden")

    def test_missing_apartment_is_404(self):
        response = self._submit(apartment_id=uuid4())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["status"], "not_found")

    def test_requests_listing_admin_only(self):
        self._submit()
        response = self.client.get("/requests", **auth_header("jane@test.com"))
        self.assertEqual(response.status_code, 403)

        response = self.client.get("/requests", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)

    def test_requests_listing_rejects_unknown_status(self):
        response = self.client.get("/requests?status=archived", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 400)

    def test_full_flow_to_member_and_back(self):
        request_id = self._submit().json()["request"]["id"]

        response = self._json("patch", "/update-request", {"id": request_id, "status": "accepted"}, "admin@test.com")
        self.assertEqual(response.json()["status"], "ok")

        response = self._json("post", "/accepted-requests", {"request_id": request_id}, "admin@test.com")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

        self.user.refresh_from_db()
        self.assertEqual(self.user.role, UserRole.MEMBER)

        response = self.client.get("/my-apartment/jane@test.com", **auth_header("jane@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["apartment_no"], "101")

        response = self._json(
            "patch", "/update-role",
            {"email": "jane@test.com", "role": "user", "delete_apartment": True},
            "admin@test.com",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["role"], "user")

        self.apartment.refresh_from_db()
        self.assertEqual(self.apartment.booking_status, BookingStatus.AVAILABLE)
        self.assertFalse(Allocation.objects.exists())

    def test_decide_twice_reports_not_pending(self):
        request_id = self._submit().json()["request"]["id"]
        self._json("patch", "/update-request", {"id": request_id, "status": "rejected"}, "admin@test.com")
        response = self._json("patch", "/update-request", {"id": request_id, "status": "accepted"}, "admin@test.com")
        self.assertEqual(response.json()["status"], "not_pending")

    def test_decide_invalid_status_is_400(self):
        request_id = self._submit().json()["request"]["id"]
        response = self._json("patch", "/update-request", {"id": request_id, "status": "maybe"}, "admin@test.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(ApartmentRequest.objects.get().status, RequestStatus.PENDING)

    def test_allocation_of_pending_request(self):
        request_id = self._submit().json()["request"]["id"]
        response = self._json("post", "/accepted-requests", {"request_id": request_id}, "admin@test.com")
        self.assertEqual(response.json()["status"], "not_accepted")

    def test_update_role_forbidden_for_user(self):
        response = self._json("patch", "/update-role", {"email": "jane@test.com", "role": "admin"}, "jane@test.com")
        self.assertEqual(response.status_code, 403)

    def test_update_role_unknown_user_is_404(self):
        response = self._json("patch", "/update-role", {"email": "ghost@test.com", "role": "user"}, "admin@test.com")
        self.assertEqual(response.status_code, 404)

    def test_my_apartment_other_member_forbidden(self):
        User.objects.create(email="bob@test.com", role=UserRole.MEMBER)
        response = self.client.get("/my-apartment/jane@test.com", **auth_header("bob@test.com"))
        self.assertEqual(response.status_code, 403)

    def test_admin_views_member_apartment(self):
        self.user.role = UserRole.MEMBER
        self.user.save()
        Allocation.objects.create(email="jane@test.com", apartment_id=self.apartment.id)

        response = self.client.get("/my-apartment/jane@test.com", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["apartment_no"], "101")

    def test_my_apartment_requires_member(self):
        response = self.client.get("/my-apartment/jane@test.com", **auth_header("jane@test.com"))
        self.assertEqual(response.status_code, 403)
