from .customer_repository import CustomerRepository
from .project_repository import ProjectRepository
from .billing_rate_repository import BillingRateRepository
from .work_entry_repository import WorkEntryRepository
from .agent_cost_repository import AgentCostRepository
from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository
from .payment_plan_repository import PaymentPlanRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "CustomerRepository",
    "ProjectRepository",
    "BillingRateRepository",
    "WorkEntryRepository",
    "AgentCostRepository",
    "InvoiceRepository",
    "InvoiceLineRepository",
    "PaymentPlanRepository",
    "WebhookEventRepository",
]
