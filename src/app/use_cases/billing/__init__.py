"""Billing domain use cases"""
from .manage_billing_rates import CreateBillingRate, ListBillingRates, UpdateBillingRate
from .manage_work_entries import RecordWorkEntry, ListWorkEntries, DeleteWorkEntry
from .manage_agent_costs import RecordAgentCost, ListAgentCosts
from .generate_invoice import GenerateInvoiceFromWork, GenerateInvoiceFromAgentCosts
from .invoice_lifecycle import MarkOverdueInvoices, SetInvoiceStatus, DeleteInvoice
from .invoice_queries import GetInvoice, ListInvoices, GetBillingSummary
from .render_invoice_pdf import RenderInvoicePdf
from .payment_plans import (
    CreatePaymentPlan,
    AcceptPaymentPlan,
    CancelPaymentPlan,
    ListPaymentPlans,
    GetPaymentPlan,
)
from .reconcile_webhook import ReconcileWebhookEvent
from .dtos import (
    CreateBillingRateCommandDTO,
    UpdateBillingRateCommandDTO,
    BillingRateDTO,
    RecordWorkEntryCommandDTO,
    WorkEntryDTO,
    RecordAgentCostCommandDTO,
    AgentCostDTO,
    GenerateInvoiceCommandDTO,
    GenerateAgentCostInvoiceCommandDTO,
    SetInvoiceStatusCommandDTO,
    ListInvoicesQueryDTO,
    InvoiceLineDTO,
    InvoiceDTO,
    SweepResultDTO,
    BillingSummaryDTO,
    InvoicePdfDTO,
    CreatePaymentPlanCommandDTO,
    AcceptPaymentPlanCommandDTO,
    AcceptPaymentPlanResponseDTO,
    PaymentPlanDTO,
    WebhookEventCommandDTO,
    WebhookHandlerOutcomeDTO,
    WebhookResultDTO,
)

__all__ = [
    "CreateBillingRate",
    "ListBillingRates",
    "UpdateBillingRate",
    "RecordWorkEntry",
    "ListWorkEntries",
    "DeleteWorkEntry",
    "RecordAgentCost",
    "ListAgentCosts",
    "GenerateInvoiceFromWork",
    "GenerateInvoiceFromAgentCosts",
    "MarkOverdueInvoices",
    "SetInvoiceStatus",
    "DeleteInvoice",
    "GetInvoice",
    "ListInvoices",
    "GetBillingSummary",
    "RenderInvoicePdf",
    "CreatePaymentPlan",
    "AcceptPaymentPlan",
    "CancelPaymentPlan",
    "ListPaymentPlans",
    "GetPaymentPlan",
    "ReconcileWebhookEvent",
    "CreateBillingRateCommandDTO",
    "UpdateBillingRateCommandDTO",
    "BillingRateDTO",
    "RecordWorkEntryCommandDTO",
    "WorkEntryDTO",
    "RecordAgentCostCommandDTO",
    "AgentCostDTO",
    "GenerateInvoiceCommandDTO",
    "GenerateAgentCostInvoiceCommandDTO",
    "SetInvoiceStatusCommandDTO",
    "ListInvoicesQueryDTO",
    "InvoiceLineDTO",
    "InvoiceDTO",
    "SweepResultDTO",
    "BillingSummaryDTO",
    "InvoicePdfDTO",
    "CreatePaymentPlanCommandDTO",
    "AcceptPaymentPlanCommandDTO",
    "AcceptPaymentPlanResponseDTO",
    "PaymentPlanDTO",
    "WebhookEventCommandDTO",
    "WebhookHandlerOutcomeDTO",
    "WebhookResultDTO",
]
