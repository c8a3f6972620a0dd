from .base import BaseModel, generate_uuid
from .customer import Customer
from .project import Project
from .billing_rate import BillingRate
from .work_entry import WorkEntry, BillingState
from .agent_cost_entry import AgentCostEntry
from .invoice import Invoice, InvoiceStatus
from .invoice_line import InvoiceLine
from .payment_plan import (
    PaymentPlan,
    PaymentPlanStatus,
    PlanFrequency,
    LIVE_PLAN_STATUSES,
    TERMINAL_PLAN_STATUSES,
)
from .webhook_event import ProcessedWebhookEvent

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Customer",
    "Project",
    "BillingRate",
    "WorkEntry",
    "BillingState",
    "AgentCostEntry",
    "Invoice",
    "InvoiceStatus",
    "InvoiceLine",
    "PaymentPlan",
    "PaymentPlanStatus",
    "PlanFrequency",
    "LIVE_PLAN_STATUSES",
    "TERMINAL_PLAN_STATUSES",
    "ProcessedWebhookEvent",
]
