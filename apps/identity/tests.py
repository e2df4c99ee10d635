import json
from io import StringIO
from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings
from django.core.management import call_command
from django.test import TestCase, Client

from .jwt_auth import JWT_ALGORITHM, create_access_token, get_email_from_token
from .models import User, UserRole
from .permissions import get_user_permissions, Permissions
from .services import set_role


def auth_header(email):
    return {"HTTP_AUTHORIZATION": f"Bearer {create_access_token(email)}"}


class RBACTest(TestCase):
    def test_admin_permissions(self):
        user = User.objects.create(email="admin@test.com", role=UserRole.ADMIN)
        perms = get_user_permissions(user)
        self.assertIn(Permissions.MEMBERSHIP_MANAGE_MEMBER, perms)
        self.assertIn(Permissions.MEMBERSHIP_VIEW_OWN_APARTMENT, perms)
        self.assertIn(Permissions.REGISTRY_VIEW_STATISTICS, perms)

    def test_member_permissions(self):
        user = User.objects.create(email="member@test.com", role=UserRole.MEMBER)
        perms = get_user_permissions(user)
        self.assertIn(Permissions.MEMBERSHIP_VIEW_OWN_APARTMENT, perms)
        self.assertNotIn(Permissions.MEMBERSHIP_REVIEW_REQUEST, perms)

    def test_user_has_no_gated_permissions(self):
        user = User.objects.create(email="user@test.com")
        self.assertEqual(get_user_permissions(user), [])


class TokenTest(TestCase):
    def test_round_trip(self):
        token = create_access_token("a@test.com")
        self.assertEqual(get_email_from_token(token), "a@test.com")

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=6)
        token = jwt.encode(
            {"sub": "a@test.com", "iat": past, "exp": past + timedelta(hours=5), "type": "access"},
            settings.JWT_SECRET,
            algorithm=JWT_ALGORITHM,
        )
        self.assertIsNone(get_email_from_token(token))

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"sub": "a@test.com", "type": "access"}, "not-the-secret", algorithm=JWT_ALGORITHM)
        self.assertIsNone(get_email_from_token(token))


class IdentityAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create(email="admin@test.com", name="Admin", role=UserRole.ADMIN)

    def test_issue_token_sets_cookie(self):
        response = self.client.post(
            "/jwt", data=json.dumps({"email": "New@Test.com"}), content_type="application/json"
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(get_email_from_token(body["token"]), "new@test.com")
        self.assertIn("token", response.cookies)
        self.assertTrue(response.cookies["token"]["httponly"])

    def test_logout_clears_cookie(self):
        response = self.client.get("/logout")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.cookies["token"].value, "")

    def test_register_user_is_idempotent(self):
        payload = json.dumps({"email": "jane@test.com", "name": "Jane"})
        first = self.client.post("/users", data=payload, content_type="application/json")
        second = self.client.post(
            "/users", data=json.dumps({"email": "jane@test.com", "name": "Other"}),
            content_type="application/json",
        )
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json()["role"], UserRole.USER)
        self.assertEqual(second.json()["id"], first.json()["id"])
        self.assertEqual(second.json()["name"], "Jane")
        self.assertEqual(User.objects.filter(email="jane@test.com").count(), 1)

    def test_get_user_role(self):
        response = self.client.get("/user/admin@test.com")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], UserRole.ADMIN)

    def test_get_unknown_user_role_404(self):
        response = self.client.get("/user/nobody@test.com")
        self.assertEqual(response.status_code, 404)

    def test_list_users_requires_auth(self):
        response = self.client.get("/users")
        self.assertEqual(response.status_code, 401)

    def test_list_users_forbidden_for_plain_user(self):
        User.objects.create(email="user@test.com")
        response = self.client.get("/users", **auth_header("user@test.com"))
        self.assertEqual(response.status_code, 403)

    def test_list_users_filtered_by_role(self):
        User.objects.create(email="member@test.com", role=UserRole.MEMBER)
        User.objects.create(email="user@test.com")
        response = self.client.get("/users?role=member", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([u["email"] for u in response.json()], ["member@test.com"])

    def test_token_for_unknown_user_rejected(self):
        response = self.client.get("/users", **auth_header("ghost@test.com"))
        self.assertEqual(response.status_code, 401)

    def test_cookie_fallback(self):
        self.client.cookies["token"] = create_access_token("admin@test.com")
        response = self.client.get("/users")
        self.assertEqual(response.status_code, 200)

    def test_malformed_header_rejected(self):
        response = self.client.get("/users", HTTP_AUTHORIZATION="Token abc")
        self.assertEqual(response.status_code, 401)


class SetRoleTest(TestCase):
    def test_unknown_role_raises(self):
        User.objects.create(email="user@test.com")
        with self.assertRaises(ValueError):
            set_role("user@test.com", "superuser", None)


class SeedUsersTest(TestCase):
    def test_creates_admin_once(self):
        call_command("seed_users", admin_email="boss@test.com", stdout=StringIO())
        call_command("seed_users", admin_email="boss@test.com", stdout=StringIO())
        self.assertEqual(User.objects.get(email="boss@test.com").role, UserRole.ADMIN)
        self.assertEqual(User.objects.count(), 3)
