"""
Dashboard statistics for administrators.

Apartment occupancy percentages and user counts by role.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from apps.identity.models import UserRole
from apps.identity.services import count_users_by_role
from .models import Apartment, BookingStatus

HUNDRED = Decimal('100')
CENT = Decimal('0.01')


@dataclass(frozen=True)
class StatisticsDTO:
    total_apartments: int
    available_percentage: Decimal
    unavailable_percentage: Decimal
    users: int
    members: int


def occupancy_percentages(available: int, total: int) -> tuple[Decimal, Decimal]:
    """
    Split 100% between available and unavailable apartments.

    Both are zero when there are no apartments. The unavailable share is the
    complement of the rounded available share, so the pair always sums to 100.
    """
    if total <= 0:
        return Decimal('0.00'), Decimal('0.00')
    available_pct = (Decimal(available) * HUNDRED / Decimal(total)).quantize(CENT, rounding=ROUND_HALF_UP)
    return available_pct, HUNDRED.quantize(CENT) - available_pct


def get_statistics() -> StatisticsDTO:
    total = Apartment.objects.count()
    available = Apartment.objects.filter(booking_status=BookingStatus.AVAILABLE).count()
    available_pct, unavailable_pct = occupancy_percentages(available, total)

    role_counts = count_users_by_role()
    return StatisticsDTO(
        total_apartments=total,
        available_percentage=available_pct,
        unavailable_percentage=unavailable_pct,
        users=role_counts[UserRole.USER],
        members=role_counts[UserRole.MEMBER],
    )
