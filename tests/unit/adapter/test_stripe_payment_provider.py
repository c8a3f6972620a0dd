"""Unit tests for StripePaymentProvider

The stripe module is replaced with a stub object so no request leaves the
process.
"""

import json
import pytest
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from src.adapter.services.payment_provider import StripePaymentProvider
from src.app.services.payment_provider import (
    PaymentProviderError,
    PaymentProviderSettings,
    WebhookVerificationError,
)


class FakeStripeError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class FakeSignatureVerificationError(FakeStripeError):
    pass


@pytest.fixture
def fake_stripe():
    stripe = MagicMock()
    stripe.StripeError = FakeStripeError
    stripe.SignatureVerificationError = FakeSignatureVerificationError
    stripe.Customer.create = MagicMock(return_value=SimpleNamespace(id="cus_123"))
    stripe.Price.create = MagicMock(return_value=SimpleNamespace(id="price_123"))
    stripe.checkout.Session.create = MagicMock(
        return_value=SimpleNamespace(id="cs_123", url="https://checkout.stripe.test/cs_123")
    )
    stripe.checkout.Session.expire = MagicMock()
    stripe.Subscription.cancel = MagicMock()
    with patch("src.adapter.services.payment_provider._get_stripe", return_value=stripe):
        yield stripe


@pytest.fixture
def settings():
    return PaymentProviderSettings(
        secret_key="sk_test_123",
        webhook_secret="whsec_123",
        success_url="https://portal.test/ok",
        cancel_url="https://portal.test/cancel",
    )


@pytest.fixture
def provider(settings):
    return StripePaymentProvider(settings)


@pytest.mark.asyncio
class TestStripeCalls:
    async def test_create_customer_passes_api_key(self, provider, fake_stripe):
        customer_id = await provider.create_customer(
            name="Acme", email="ap@acme.test", metadata={"customerId": "cust-1"}
        )

        assert customer_id == "cus_123"
        fake_stripe.Customer.create.assert_called_once_with(
            api_key="sk_test_123", name="Acme", metadata={"customerId": "cust-1"}, email="ap@acme.test"
        )

    async def test_recurring_price(self, provider, fake_stripe):
        price_id = await provider.create_recurring_price(
            amount_cents=3334, currency="USD", interval="week", interval_count=2, product_name="Plan"
        )

        assert price_id == "price_123"
        kwargs = fake_stripe.Price.create.call_args.kwargs
        assert kwargs["currency"] == "usd"
        assert kwargs["unit_amount"] == 3334
        assert kwargs["recurring"] == {"interval": "week", "interval_count": 2}
        assert kwargs["product_data"] == {"name": "Plan"}

    async def test_checkout_session_is_subscription_mode_with_cancel_at(self, provider, fake_stripe):
        cancel_at = datetime(2024, 6, 1, 0, 0, 0)
        metadata = {"paymentPlanId": "plan-1", "invoiceId": "inv-1", "customerId": "cust-1"}

        session = await provider.create_checkout_session(
            customer_id="cus_123", price_id="price_123", cancel_at=cancel_at, metadata=metadata
        )

        assert session.id == "cs_123"
        assert session.url == "https://checkout.stripe.test/cs_123"
        kwargs = fake_stripe.checkout.Session.create.call_args.kwargs
        assert kwargs["mode"] == "subscription"
        assert kwargs["line_items"] == [{"price": "price_123", "quantity": 1}]
        assert kwargs["metadata"] == metadata
        assert kwargs["subscription_data"]["metadata"] == metadata
        assert kwargs["subscription_data"]["cancel_at"] == int(cancel_at.timestamp())
        assert kwargs["success_url"] == "https://portal.test/ok"
        assert kwargs["cancel_url"] == "https://portal.test/cancel"

    async def test_cancel_and_expire(self, provider, fake_stripe):
        await provider.cancel_subscription("sub_123")
        await provider.expire_checkout_session("cs_123")

        fake_stripe.Subscription.cancel.assert_called_once_with("sub_123", api_key="sk_test_123")
        fake_stripe.checkout.Session.expire.assert_called_once_with("cs_123", api_key="sk_test_123")

    async def test_stripe_error_wrapped(self, provider, fake_stripe):
        fake_stripe.Price.create = MagicMock(side_effect=FakeStripeError("Invalid currency", code="invalid"))

        with pytest.raises(PaymentProviderError) as exc_info:
            await provider.create_recurring_price(
                amount_cents=100, currency="XXX", interval="month", interval_count=1, product_name="Plan"
            )

        assert exc_info.value.message == "Invalid currency"
        assert exc_info.value.code == "invalid"

    async def test_missing_secret_key(self, fake_stripe):
        provider = StripePaymentProvider(PaymentProviderSettings())

        with pytest.raises(PaymentProviderError) as exc_info:
            await provider.create_customer(name="Acme", email=None, metadata={})

        assert exc_info.value.code == "not_configured"
        fake_stripe.Customer.create.assert_not_called()


class TestConstructEvent:
    payload = json.dumps({"id": "evt_1", "type": "invoice.paid", "data": {"object": {}}}).encode()

    def test_verified_payload_parsed(self, provider, fake_stripe):
        event = provider.construct_event(self.payload, "t=1,v1=abc")

        assert event["id"] == "evt_1"
        fake_stripe.Webhook.construct_event.assert_called_once_with(
            payload=self.payload, sig_header="t=1,v1=abc", secret="whsec_123"
        )

    def test_bad_signature(self, provider, fake_stripe):
        fake_stripe.Webhook.construct_event = MagicMock(side_effect=FakeSignatureVerificationError("mismatch"))

        with pytest.raises(WebhookVerificationError):
            provider.construct_event(self.payload, "t=1,v1=bad")

    def test_missing_signature_with_secret(self, provider, fake_stripe):
        with pytest.raises(WebhookVerificationError):
            provider.construct_event(self.payload, None)

    def test_no_secret_parses_without_verification(self, fake_stripe):
        provider = StripePaymentProvider(PaymentProviderSettings(secret_key="sk_test_123"))

        event = provider.construct_event(self.payload, None)

        assert event["type"] == "invoice.paid"
        fake_stripe.Webhook.construct_event.assert_not_called()

    def test_non_object_payload(self, fake_stripe):
        provider = StripePaymentProvider(PaymentProviderSettings())

        with pytest.raises(ValueError):
            provider.construct_event(b"[1, 2, 3]", None)
