from .unit_of_work import UnitOfWork
from .notification_service import NotificationService
from .pdf_service import PdfService
from .payment_provider import (
    PaymentProvider,
    PaymentProviderError,
    PaymentProviderSettings,
    CheckoutSession,
    WebhookVerificationError,
)

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "PdfService",
    "PaymentProvider",
    "PaymentProviderError",
    "PaymentProviderSettings",
    "CheckoutSession",
    "WebhookVerificationError",
]
