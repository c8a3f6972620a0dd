"""Payment Provider Interface

Defines the contract for the external recurring-payment provider used by
payment plans, and the inbound webhook verifier.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel


class PaymentProviderError(Exception):
    """Raised when a call to the payment provider fails"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class WebhookVerificationError(Exception):
    """Raised when a webhook payload fails signature verification"""


class PaymentProviderSettings(BaseModel):
    """
    Provider credentials resolved once at startup

    Passed explicitly into the provider adapter and the webhook reconciler
    so both can be exercised with fake credentials.
    """

    secret_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    success_url: str = "http://localhost:8000/portal?payment_plan=accepted"
    cancel_url: str = "http://localhost:8000/portal?payment_plan=cancelled"

    model_config = {"frozen": True}


class CheckoutSession(BaseModel):
    id: str
    url: Optional[str] = None


class PaymentProvider(ABC):
    """
    Abstract payment provider

    All methods raise PaymentProviderError on failure; nothing is retried.
    """

    @abstractmethod
    async def create_customer(self, name: str, email: Optional[str], metadata: Dict[str, str]) -> str:
        """
        Create a customer at the provider

        Returns:
            Provider customer id
        """
        pass

    @abstractmethod
    async def create_recurring_price(
        self,
        amount_cents: int,
        currency: str,
        interval: str,
        interval_count: int,
        product_name: str,
    ) -> str:
        """
        Create a recurring price object

        Args:
            amount_cents: Amount charged each period
            currency: ISO 4217 code
            interval: "week" or "month"
            interval_count: Number of intervals between charges
            product_name: Name shown to the customer

        Returns:
            Provider price id
        """
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        cancel_at: datetime,
        metadata: Dict[str, str],
    ) -> CheckoutSession:
        """
        Start a subscription-mode checkout

        Args:
            customer_id: Provider customer id
            price_id: Recurring price to subscribe to
            cancel_at: When the provider should end the subscription
            metadata: Copied onto both the session and the subscription

        Returns:
            CheckoutSession with the redirect url
        """
        pass

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str) -> None:
        pass

    @abstractmethod
    async def expire_checkout_session(self, session_id: str) -> None:
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and parse an inbound webhook payload

        Raises:
            ValueError: Payload is not valid JSON
            WebhookVerificationError: Signature does not match the webhook secret
        """
        pass
