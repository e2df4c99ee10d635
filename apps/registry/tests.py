import json
from decimal import Decimal

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, Client

from apps.identity.jwt_auth import create_access_token
from apps.identity.models import User, UserRole
from apps.governance.models import AuditLog
from .analytics_service import get_statistics, occupancy_percentages
from .models import Apartment, BookingStatus
from .services import list_apartments, mark_available, mark_unavailable


def auth_header(email):
    return {"HTTP_AUTHORIZATION": f"Bearer {create_access_token(email)}"}


def make_apartment(apartment_no, rent, block="A", status=BookingStatus.AVAILABLE):
    return Apartment.objects.create(
        block_name=block,
        floor_no=1,
        apartment_no=apartment_no,
        rent=Decimal(rent),
        booking_status=status,
    )


class ListApartmentsTest(TestCase):
    def setUp(self):
        for i, rent in enumerate([1500, 800, 1200, 950, 2000, 1100, 700]):
            make_apartment(f"{i + 1:02d}", rent)

    def test_sorted_by_ascending_rent(self):
        page = list_apartments()
        rents = [a.rent for a in page.apartments]
        self.assertEqual(rents, sorted(rents))
        self.assertEqual(page.total, 7)
        self.assertEqual(page.total_pages, 1)

    def test_rent_range_is_inclusive(self):
        page = list_apartments(min_rent=Decimal('800'), max_rent=Decimal('1200'))
        self.assertEqual([a.rent for a in page.apartments], [Decimal('800'), Decimal('950'), Decimal('1100'), Decimal('1200')])

    def test_pages_partition_the_ordered_set(self):
        first = list_apartments(page=1, limit=3)
        second = list_apartments(page=2, limit=3)
        third = list_apartments(page=3, limit=3)
        self.assertEqual(first.total_pages, 3)
        self.assertEqual(len(first.apartments), 3)
        self.assertEqual(len(third.apartments), 1)

        combined = first.apartments + second.apartments + third.apartments
        self.assertEqual([a.id for a in combined], [a.id for a in list_apartments().apartments])

    def test_page_past_the_end_is_empty(self):
        page = list_apartments(page=5, limit=3)
        self.assertEqual(page.apartments, [])
        self.assertEqual(page.total, 7)

    def test_invalid_paging_raises(self):
        with self.assertRaises(ValueError):
            list_apartments(page=0, limit=3)
        with self.assertRaises(ValueError):
            list_apartments(limit=0)

    def test_empty_result(self):
        page = list_apartments(min_rent=Decimal('5000'))
        self.assertEqual(page.total, 0)
        self.assertEqual(page.total_pages, 0)


class BookingStatusTest(TestCase):
    def test_unique_per_block_and_number(self):
        make_apartment("01", 1000)
        with self.assertRaises(IntegrityError):
            make_apartment("01", 1200)

    def test_mark_unavailable_is_idempotent(self):
        apartment = make_apartment("01", 1000)
        mark_unavailable(apartment.id)
        dto = mark_unavailable(apartment.id)
        self.assertEqual(dto.booking_status, BookingStatus.UNAVAILABLE)
        self.assertFalse(dto.is_available)

        dto = mark_available(apartment.id)
        self.assertTrue(dto.is_available)


class StatisticsTest(TestCase):
    def test_no_apartments(self):
        stats = get_statistics()
        self.assertEqual(stats.total_apartments, 0)
        self.assertEqual(stats.available_percentage, Decimal('0.00'))
        self.assertEqual(stats.unavailable_percentage, Decimal('0.00'))

    def test_percentages_sum_to_hundred(self):
        available, unavailable = occupancy_percentages(1, 3)
        self.assertEqual(available, Decimal('33.33'))
        self.assertEqual(unavailable, Decimal('66.67'))
        self.assertEqual(available + unavailable, Decimal('100.00'))

    def test_counts_users_and_members(self):
        make_apartment("01", 1000)
        make_apartment("02", 1000, status=BookingStatus.UNAVAILABLE)
        make_apartment("03", 1000, status=BookingStatus.UNAVAILABLE)
        make_apartment("04", 1000, status=BookingStatus.UNAVAILABLE)
        User.objects.create(email="u1@test.com")
        User.objects.create(email="u2@test.com")
        User.objects.create(email="m1@test.com", role=UserRole.MEMBER)
        User.objects.create(email="admin@test.com", role=UserRole.ADMIN)

        stats = get_statistics()
        self.assertEqual(stats.total_apartments, 4)
        self.assertEqual(stats.available_percentage, Decimal('25.00'))
        self.assertEqual(stats.unavailable_percentage, Decimal('75.00'))
        self.assertEqual(stats.users, 2)
        self.assertEqual(stats.members, 1)


class RegistryAPITest(TestCase):
    def setUp(self):
        self.client = Client()
        self.admin = User.objects.create(email="admin@test.com", role=UserRole.ADMIN)
        self.user = User.objects.create(email="user@test.com")
        self.apartment = make_apartment("01", 1000)
        make_apartment("02", 1500)
        make_apartment("03", 800)

    def test_listing_is_public(self):
        response = self.client.get("/apartments?minRent=900&page=1&limit=1")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual(body["total_pages"], 2)
        self.assertEqual(body["apartments"][0]["id"], str(self.apartment.id))

    def test_listing_rejects_zero_limit(self):
        response = self.client.get("/apartments?limit=0")
        self.assertEqual(response.status_code, 422)

    def test_apartment_status(self):
        response = self.client.get(f"/apartment-status/{self.apartment.id}", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"available": True})

    def test_apartment_status_requires_admin(self):
        response = self.client.get(f"/apartment-status/{self.apartment.id}")
        self.assertEqual(response.status_code, 401)
        response = self.client.get(f"/apartment-status/{self.apartment.id}", **auth_header("user@test.com"))
        self.assertEqual(response.status_code, 403)

    def test_allocate_apartment_flips_status(self):
        response = self.client.patch(f"/allocate-apartment/{self.apartment.id}", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.apartment.refresh_from_db()
        self.assertEqual(self.apartment.booking_status, BookingStatus.UNAVAILABLE)
        self.assertTrue(AuditLog.objects.filter(target_id=self.apartment.id).exists())

    def test_create_apartment(self):
        response = self.client.post(
            "/apartments",
            data=json.dumps({"block_name": "B", "floor_no": 2, "apartment_no": "201", "rent": "1250.00"}),
            content_type="application/json",
            **auth_header("admin@test.com"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking_status"], BookingStatus.AVAILABLE)

    def test_create_duplicate_apartment_rejected(self):
        response = self.client.post(
            "/apartments",
            data=json.dumps({"block_name": "A", "floor_no": 1, "apartment_no": "01", "rent": "900.00"}),
            content_type="application/json",
            **auth_header("admin@test.com"),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Apartment.objects.filter(block_name="A", apartment_no="01").count(), 1)

    def test_statistics_requires_admin(self):
        response = self.client.get("/statistics", **auth_header("user@test.com"))
        self.assertEqual(response.status_code, 403)
        response = self.client.get("/statistics", **auth_header("admin@test.com"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total_apartments"], 3)


class SeedApartmentsTest(TestCase):
    def test_seed_is_repeatable(self):
        call_command("seed_apartments", floors=2, per_floor=2)
        count = Apartment.objects.count()
        call_command("seed_apartments", floors=2, per_floor=2)
        self.assertEqual(Apartment.objects.count(), count)
        self.assertGreater(count, 0)
