from typing import List, Dict
from .models import UserRole, User


class Permissions:
    # Identity
    IDENTITY_VIEW_USER = "identity.view_user"

    # Registry
    REGISTRY_VIEW_STATUS = "registry.view_status"
    REGISTRY_MANAGE_APARTMENT = "registry.manage_apartment"
    REGISTRY_VIEW_STATISTICS = "registry.view_statistics"

    # Membership
    MEMBERSHIP_REVIEW_REQUEST = "membership.review_request"
    MEMBERSHIP_MANAGE_MEMBER = "membership.manage_member"
    MEMBERSHIP_VIEW_OWN_APARTMENT = "membership.view_own_apartment"

    # Ledger
    LEDGER_VIEW_ALL_PAYMENTS = "ledger.view_all_payments"
    LEDGER_VIEW_PAYMENT_HISTORY = "ledger.view_payment_history"
    LEDGER_MANAGE_COUPON = "ledger.manage_coupon"

    # Governance
    GOVERNANCE_MANAGE_ANNOUNCEMENT = "governance.manage_announcement"
    GOVERNANCE_VIEW_AUDIT = "governance.view_audit"


# Static Role -> Permission Mapping
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    UserRole.ADMIN: [
        Permissions.IDENTITY_VIEW_USER,
        Permissions.REGISTRY_VIEW_STATUS,
        Permissions.REGISTRY_MANAGE_APARTMENT,
        Permissions.REGISTRY_VIEW_STATISTICS,
        Permissions.MEMBERSHIP_REVIEW_REQUEST,
        Permissions.MEMBERSHIP_MANAGE_MEMBER,
        Permissions.MEMBERSHIP_VIEW_OWN_APARTMENT,
        Permissions.LEDGER_VIEW_ALL_PAYMENTS,
        Permissions.LEDGER_VIEW_PAYMENT_HISTORY,
        Permissions.LEDGER_MANAGE_COUPON,
        Permissions.GOVERNANCE_MANAGE_ANNOUNCEMENT,
        Permissions.GOVERNANCE_VIEW_AUDIT,
    ],
    UserRole.MEMBER: [
        Permissions.MEMBERSHIP_VIEW_OWN_APARTMENT,
        Permissions.LEDGER_VIEW_PAYMENT_HISTORY,
    ],
    # Plain users can browse, request an apartment and read announcements;
    # none of that is permission gated.
    UserRole.USER: [],
}


def get_user_permissions(user: User) -> List[str]:
    """
    Returns a list of permission strings for the given user based on their role.
    """
    if not user:
        return []
    return ROLE_PERMISSIONS.get(user.role, [])
