# core/payment_providers.py

import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import stripe

from core.config import Settings
from core.errors import PaymentError
from core.logging_config import get_logger


logger = get_logger("payments.provider")

SECRET_SEPARATOR = "_secret_"


@dataclass(frozen=True)
class PaymentIntent:
    payment_intent_id: str
    client_secret: str


def intent_id_from_client_secret(client_secret: str) -> str:
    """'pi_123_secret_abc' -> 'pi_123'."""
    return client_secret.split(SECRET_SEPARATOR, 1)[0]


def to_minor_units(amount: Decimal) -> int:
    """PHP 50.00 -> 5000 centavos."""
    return int((amount * 100).quantize(Decimal("1")))


class PlaceholderProvider:
    """
    Issues provider-shaped identifiers without contacting any gateway.
    No charge is authorised; verification always confirms.
    """

    name = "placeholder"

    def create_intent(self, amount: Decimal, currency: str, description: str, metadata: dict) -> PaymentIntent:
        intent_id = f"pi_{int(time.time() * 1000)}_{secrets.token_hex(5)}"
        return PaymentIntent(
            payment_intent_id=intent_id,
            client_secret=f"{intent_id}{SECRET_SEPARATOR}{secrets.token_hex(10)}",
        )

    def confirm(self, payment_intent_id: str) -> None:
        return None


class StripeProvider:
    """Real Stripe PaymentIntents; confirmation requires status 'succeeded'."""

    name = "stripe"

    def __init__(self, secret_key: str):
        if not secret_key:
            raise PaymentError("Stripe secret key not configured", status_code=500)
        self.secret_key = secret_key

    def create_intent(self, amount: Decimal, currency: str, description: str, metadata: dict) -> PaymentIntent:
        stripe.api_key = self.secret_key
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                description=description,
                metadata={k: str(v) for k, v in metadata.items()},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe API error creating payment intent: {e}")
            raise PaymentError(f"Stripe error: {e.user_message or str(e)}") from e

        return PaymentIntent(payment_intent_id=intent.id, client_secret=intent.client_secret)

    def confirm(self, payment_intent_id: str) -> None:
        stripe.api_key = self.secret_key
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe API error verifying payment intent {payment_intent_id}: {e}")
            raise PaymentError(f"Stripe error: {e.user_message or str(e)}") from e

        if intent.status != "succeeded":
            logger.warning(f"Payment intent {payment_intent_id} not succeeded: {intent.status}")
            raise PaymentError(f"Payment not completed (status: {intent.status})", status_code=402)


def build_payment_provider(settings: Settings, override: Optional[str] = None):
    provider = override or settings.PAYMENT_PROVIDER
    if provider == "stripe":
        return StripeProvider(settings.STRIPE_SECRET_KEY)
    return PlaceholderProvider()
