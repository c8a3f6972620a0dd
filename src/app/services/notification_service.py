"""Notification Service Interface

Defines the contract for customer-facing billing notifications. Callers
treat delivery as fire-and-forget: a failed notification never blocks or
reverts a billing state change.
"""

from abc import ABC, abstractmethod
from src.domain.invoice import Invoice
from src.domain.payment_plan import PaymentPlan


class NotificationService(ABC):
    """
    Abstract notification service for billing events

    Implementations can send notifications via:
    - Webhook (HTTP POST)
    - Email
    - Push
    - etc.
    """

    @abstractmethod
    async def send_invoice_created(self, invoice: Invoice) -> bool:
        """
        Notify the customer about a new invoice

        Args:
            invoice: Newly generated invoice

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass

    @abstractmethod
    async def send_payment_plan_available(self, plan: PaymentPlan, invoice: Invoice) -> bool:
        """
        Notify the customer that a payment plan was offered

        Args:
            plan: Pending payment plan
            invoice: Invoice the plan pays off

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
