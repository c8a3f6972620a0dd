"""Stripe Payment Provider Implementation

Implements PaymentProvider on top of the stripe SDK. Credentials are passed
per call from PaymentProviderSettings; the module never sets
stripe.api_key globally.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from src.app.services.payment_provider import (
    CheckoutSession,
    PaymentProvider,
    PaymentProviderError,
    PaymentProviderSettings,
    WebhookVerificationError,
)

logger = logging.getLogger(__name__)


def _get_stripe() -> Any:
    """Lazily import the Stripe library"""
    import stripe

    return stripe


class StripePaymentProvider(PaymentProvider):
    """
    Stripe implementation of PaymentProvider

    SDK calls are blocking, so they run in a worker thread. Any stripe
    exception is wrapped into PaymentProviderError.
    """

    def __init__(self, settings: PaymentProviderSettings):
        self.settings = settings

    async def _call(self, operation: str, func, *args, **params) -> Any:
        if not self.settings.secret_key:
            raise PaymentProviderError("Payment provider is not configured", code="not_configured")

        stripe = _get_stripe()
        try:
            return await asyncio.to_thread(func, *args, api_key=self.settings.secret_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {e}")
            raise PaymentProviderError(str(e), code=getattr(e, "code", None)) from e

    async def create_customer(self, name: str, email: Optional[str], metadata: Dict[str, str]) -> str:
        stripe = _get_stripe()
        params: Dict[str, Any] = {"name": name, "metadata": metadata}
        if email:
            params["email"] = email

        customer = await self._call("customer creation", stripe.Customer.create, **params)
        return customer.id

    async def create_recurring_price(
        self,
        amount_cents: int,
        currency: str,
        interval: str,
        interval_count: int,
        product_name: str,
    ) -> str:
        stripe = _get_stripe()
        price = await self._call(
            "price creation",
            stripe.Price.create,
            currency=currency.lower(),
            unit_amount=amount_cents,
            recurring={"interval": interval, "interval_count": interval_count},
            product_data={"name": product_name},
        )
        return price.id

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        cancel_at: datetime,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        stripe = _get_stripe()
        session_params: Dict[str, Any] = {
            "customer": customer_id,
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "subscription_data": {
                "metadata": metadata,
                "cancel_at": int(cancel_at.timestamp()),
            },
            "success_url": self.settings.success_url,
            "cancel_url": self.settings.cancel_url,
            "metadata": metadata,
        }

        session = await self._call("checkout session creation", stripe.checkout.Session.create, **session_params)
        return CheckoutSession(id=session.id, url=session.url)

    async def cancel_subscription(self, subscription_id: str) -> None:
        stripe = _get_stripe()
        await self._call("subscription cancellation", stripe.Subscription.cancel, subscription_id)

    async def expire_checkout_session(self, session_id: str) -> None:
        stripe = _get_stripe()
        await self._call("checkout session expiry", stripe.checkout.Session.expire, session_id)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and parse an inbound webhook payload

        Without a configured webhook secret the payload is parsed as-is.

        Raises:
            ValueError: Payload is not valid JSON
            WebhookVerificationError: Signature does not match the webhook secret
        """
        if self.settings.webhook_secret:
            if not signature:
                raise WebhookVerificationError("Missing Stripe-Signature header")

            stripe = _get_stripe()
            try:
                stripe.Webhook.construct_event(
                    payload=payload,
                    sig_header=signature,
                    secret=self.settings.webhook_secret,
                )
            except stripe.SignatureVerificationError as e:
                raise WebhookVerificationError(str(e)) from e

        event = json.loads(payload)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")
        return event
