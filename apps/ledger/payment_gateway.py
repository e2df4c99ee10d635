"""
Stripe payment processor access.

Everything that talks to the processor goes through this module so the rest
of the ledger deals in plain dicts and minor-unit integers.
"""
import logging

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

SUCCEEDED = 'succeeded'


class PaymentGatewayError(Exception):
    """The processor is unreachable, misconfigured or rejected the call."""


def _configure() -> None:
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentGatewayError("Payment processor is not configured")
    stripe.api_key = settings.STRIPE_SECRET_KEY


def create_charge_authorization(amount_minor: int, metadata: dict = None) -> dict:
    """
    Create a card PaymentIntent for ``amount_minor`` (cents).

    Returns ``{"id", "client_secret", "amount"}``.
    """
    _configure()
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount_minor,
            currency=settings.STRIPE_CURRENCY,
            payment_method_types=['card'],
            metadata=metadata or {},
        )
    except stripe.StripeError as e:
        logger.error(f"PaymentIntent creation failed: {e}")
        raise PaymentGatewayError(str(e)) from e

    return {
        "id": intent["id"],
        "client_secret": intent["client_secret"],
        "amount": intent["amount"],
    }


def retrieve_charge(intent_id: str) -> dict:
    """Fetch an existing PaymentIntent. Returns ``{"id", "amount", "status", "metadata"}``."""
    _configure()
    try:
        intent = stripe.PaymentIntent.retrieve(intent_id)
    except stripe.InvalidRequestError as e:
        logger.warning(f"Unknown PaymentIntent {intent_id}: {e}")
        return {"id": intent_id, "amount": None, "status": None, "metadata": {}}
    except stripe.StripeError as e:
        logger.error(f"PaymentIntent lookup failed for {intent_id}: {e}")
        raise PaymentGatewayError(str(e)) from e

    return {
        "id": intent["id"],
        "amount": intent["amount"],
        "status": intent["status"],
        "metadata": dict(intent.get("metadata") or {}),
    }
