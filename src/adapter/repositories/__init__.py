from .customer_repository import SqlAlchemyCustomerRepository
from .project_repository import SqlAlchemyProjectRepository
from .billing_rate_repository import SqlAlchemyBillingRateRepository
from .work_entry_repository import SqlAlchemyWorkEntryRepository
from .agent_cost_repository import SqlAlchemyAgentCostRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository
from .payment_plan_repository import SqlAlchemyPaymentPlanRepository
from .webhook_event_repository import SqlAlchemyWebhookEventRepository

__all__ = [
    "SqlAlchemyCustomerRepository",
    "SqlAlchemyProjectRepository",
    "SqlAlchemyBillingRateRepository",
    "SqlAlchemyWorkEntryRepository",
    "SqlAlchemyAgentCostRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
    "SqlAlchemyPaymentPlanRepository",
    "SqlAlchemyWebhookEventRepository",
]
