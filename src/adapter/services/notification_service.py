"""Notification Service Implementations

Provides concrete implementations for sending billing notifications.
"""

import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.invoice import Invoice
from src.domain.payment_plan import PaymentPlan

logger = logging.getLogger(__name__)


def _format_cents(amount_cents: int, currency: str) -> str:
    return f"{currency} {amount_cents / 100:,.2f}"


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a fallback.
    """

    async def send_invoice_created(self, invoice: Invoice) -> bool:
        logger.info(
            f"[INVOICE CREATED] Customer: {invoice.customer_id}, "
            f"Invoice: {invoice.invoice_number}, "
            f"Total: {_format_cents(invoice.total_amount_cents, invoice.currency)}, "
            f"Due: {invoice.due_date.isoformat() if invoice.due_date else '-'}"
        )
        return True

    async def send_payment_plan_available(self, plan: PaymentPlan, invoice: Invoice) -> bool:
        logger.info(
            f"[PAYMENT PLAN AVAILABLE] Customer: {plan.customer_id}, "
            f"Invoice: {invoice.invoice_number}, "
            f"Installments: {plan.number_of_installments} x "
            f"{_format_cents(plan.installment_amount_cents, invoice.currency)} ({plan.frequency.value})"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends notifications via HTTP webhook

    Sends JSON payload to configured webhook URL. The receiver is
    responsible for email and push delivery.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notifications to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def _post(self, payload: Dict[str, Any], subject: str) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(f"Webhook notification sent for {subject} to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send webhook notification for {subject}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending webhook notification for {subject}: {e}")
            return False

    async def send_invoice_created(self, invoice: Invoice) -> bool:
        payload = {
            "type": "invoice_created",
            "customer_id": invoice.customer_id,
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "total_amount_cents": invoice.total_amount_cents,
            "currency": invoice.currency,
            "due_date": invoice.due_date.isoformat() if invoice.due_date else None,
            "title": "New Invoice",
            "message": (
                f"Invoice {invoice.invoice_number} for "
                f"{_format_cents(invoice.total_amount_cents, invoice.currency)} has been issued."
            ),
        }
        return await self._post(payload, f"invoice {invoice.invoice_number}")

    async def send_payment_plan_available(self, plan: PaymentPlan, invoice: Invoice) -> bool:
        payload = {
            "type": "payment_plan_created",
            "customer_id": plan.customer_id,
            "payment_plan_id": plan.id,
            "invoice_id": invoice.id,
            "invoice_number": invoice.invoice_number,
            "number_of_installments": plan.number_of_installments,
            "installment_amount_cents": plan.installment_amount_cents,
            "frequency": plan.frequency.value,
            "title": "Payment Plan Available",
            "message": (
                f"A payment plan is available for invoice {invoice.invoice_number}: "
                f"{plan.number_of_installments} {plan.frequency.value} payments of "
                f"{_format_cents(plan.installment_amount_cents, invoice.currency)}."
            ),
        }
        return await self._post(payload, f"payment plan {plan.id}")


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    Useful for sending to multiple channels (e.g., log + webhook).
    """

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_invoice_created(self, invoice: Invoice) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_invoice_created(invoice):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success

    async def send_payment_plan_available(self, plan: PaymentPlan, invoice: Invoice) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_payment_plan_available(plan, invoice):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
