"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from src.domain.agent_cost_entry import AgentCostEntry
from src.domain.billing_rate import BillingRate
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine
from src.domain.payment_plan import PaymentPlan, PlanFrequency
from src.domain.work_entry import WorkEntry


# ============ Rate catalog ============


class CreateBillingRateCommandDTO(BaseModel):
    """
    Command DTO for creating a billing rate

    Used as input to CreateBillingRate use case.
    """

    code: str = Field(..., min_length=1, max_length=50, description="Unique short code")
    name: str = Field(..., min_length=1, description="Display name used on invoice lines")
    unit_label: str = Field(default="hour", min_length=1, description="Unit label (hour, page, item)")
    rate_cents: int = Field(..., ge=0, description="Unit price in cents")
    description: Optional[str] = Field(default=None, description="Optional longer description")
    is_active: bool = Field(default=True, description="Whether the rate can be used for new work")

    class Config:
        json_schema_extra = {
            "example": {
                "code": "DEV_HOUR",
                "name": "Development",
                "unit_label": "hour",
                "rate_cents": 15000,
            }
        }


class UpdateBillingRateCommandDTO(BaseModel):
    """
    Command DTO for updating a billing rate

    Unset fields are left unchanged. rate_cents can only change while no
    work entry references the rate.
    """

    rate_id: str
    name: Optional[str] = Field(default=None, min_length=1)
    unit_label: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    rate_cents: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class BillingRateDTO(BaseModel):
    id: str
    code: str
    name: str
    unit_label: str
    rate_cents: int
    description: Optional[str] = None
    is_active: bool

    @classmethod
    def from_entity(cls, rate: BillingRate) -> "BillingRateDTO":
        return cls(
            id=rate.id,
            code=rate.code,
            name=rate.name,
            unit_label=rate.unit_label,
            rate_cents=rate.rate_cents,
            description=rate.description,
            is_active=rate.is_active,
        )


# ============ Work ledger ============


class RecordWorkEntryCommandDTO(BaseModel):
    """
    Command DTO for recording billable work

    The customer is taken from the project.
    """

    project_id: str = Field(..., description="Project the work was done for")
    rate_id: str = Field(..., description="Billing rate used to value the work")
    quantity: Decimal = Field(..., gt=0, description="Quantity in rate units (must be > 0)")
    description: Optional[str] = Field(default=None, description="What was done")
    recorded_at: Optional[datetime] = Field(default=None, description="Defaults to now")

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "p1d2e3f4-0000-4000-8000-000000000001",
                "rate_id": "r1d2e3f4-0000-4000-8000-000000000001",
                "quantity": "2.5",
                "description": "API integration",
            }
        }


class WorkEntryDTO(BaseModel):
    id: str
    project_id: str
    customer_id: str
    rate_id: str
    quantity: Decimal
    description: Optional[str] = None
    invoice_id: Optional[str] = None
    billing_state: str
    recorded_at: datetime

    @classmethod
    def from_entity(cls, entry: WorkEntry) -> "WorkEntryDTO":
        return cls(
            id=entry.id,
            project_id=entry.project_id,
            customer_id=entry.customer_id,
            rate_id=entry.rate_id,
            quantity=entry.quantity,
            description=entry.description,
            invoice_id=entry.invoice_id,
            billing_state=entry.billing_state.value,
            recorded_at=entry.recorded_at,
        )


# ============ Agent costs ============


class RecordAgentCostCommandDTO(BaseModel):
    """
    Command DTO for recording an AI agent session cost

    client_charge = round(agent_cost * (1 + markup_percent / 100))
    """

    description: str = Field(..., min_length=1)
    agent_cost_cents: int = Field(..., ge=0, description="Raw cost in cents")
    markup_percent: int = Field(default=50, ge=0, description="Markup on top of the raw cost")
    project_id: Optional[str] = Field(default=None, description="Optional project")
    customer_id: Optional[str] = Field(default=None, description="Defaults to the project's customer")
    session_date: Optional[datetime] = None


class AgentCostDTO(BaseModel):
    id: str
    project_id: Optional[str] = None
    customer_id: Optional[str] = None
    description: str
    agent_cost_cents: int
    markup_percent: int
    client_charge_cents: int
    session_date: datetime
    invoice_id: Optional[str] = None
    billing_state: str

    @classmethod
    def from_entity(cls, entry: AgentCostEntry) -> "AgentCostDTO":
        return cls(
            id=entry.id,
            project_id=entry.project_id,
            customer_id=entry.customer_id,
            description=entry.description,
            agent_cost_cents=entry.agent_cost_cents,
            markup_percent=entry.markup_percent,
            client_charge_cents=entry.client_charge_cents,
            session_date=entry.session_date,
            invoice_id=entry.invoice_id,
            billing_state=entry.billing_state.value,
        )


# ============ Invoices ============


class GenerateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for generating an invoice from a project's unbilled work

    Used as input to GenerateInvoiceFromWork use case.
    """

    project_id: str = Field(..., description="Project whose unbilled work is invoiced")
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Tax rate in percent")
    due_days: int = Field(default=30, gt=0, description="Days until the invoice is due")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "p1d2e3f4-0000-4000-8000-000000000001",
                "tax_rate": "8.25",
                "due_days": 30,
            }
        }


class GenerateAgentCostInvoiceCommandDTO(BaseModel):
    """
    Command DTO for invoicing a customer's unbilled agent costs
    """

    customer_id: str
    project_id: Optional[str] = None
    due_days: int = Field(default=30, gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)


class SetInvoiceStatusCommandDTO(BaseModel):
    invoice_id: str
    status: InvoiceStatus


class ListInvoicesQueryDTO(BaseModel):
    customer_id: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class InvoiceLineDTO(BaseModel):
    """DTO for invoice line item"""

    id: str
    description: str
    quantity: Decimal
    unit_price_cents: int
    total_cents: int
    work_entry_id: Optional[str] = None
    agent_cost_entry_id: Optional[str] = None

    @classmethod
    def from_entity(cls, line: InvoiceLine) -> "InvoiceLineDTO":
        return cls(
            id=line.id,
            description=line.description,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            total_cents=line.total_cents,
            work_entry_id=line.work_entry_id,
            agent_cost_entry_id=line.agent_cost_entry_id,
        )


class InvoiceDTO(BaseModel):
    """
    Response DTO for an invoice

    line_items is only populated by operations that read them.
    """

    id: str
    invoice_number: str
    customer_id: str
    project_id: Optional[str] = None
    status: str
    subtotal_cents: int
    tax_rate: Decimal
    tax_amount_cents: int
    total_amount_cents: int
    currency: str
    issued_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    line_items: List[InvoiceLineDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, invoice: Invoice, lines: Optional[List[InvoiceLine]] = None) -> "InvoiceDTO":
        return cls(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            customer_id=invoice.customer_id,
            project_id=invoice.project_id,
            status=invoice.status.value,
            subtotal_cents=invoice.subtotal_cents,
            tax_rate=invoice.tax_rate,
            tax_amount_cents=invoice.tax_amount_cents,
            total_amount_cents=invoice.total_amount_cents,
            currency=invoice.currency,
            issued_at=invoice.issued_at,
            due_date=invoice.due_date,
            paid_at=invoice.paid_at,
            notes=invoice.notes,
            created_at=invoice.created_at,
            line_items=[InvoiceLineDTO.from_entity(line) for line in lines or []],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "6f1c2e9a-2f7b-4c1e-9d5e-0f3f5a1b2c3d",
                "invoice_number": "INV-2024-0001",
                "customer_id": "c1d2e3f4-0000-4000-8000-000000000001",
                "status": "pending",
                "subtotal_cents": 30000,
                "tax_rate": "0",
                "tax_amount_cents": 0,
                "total_amount_cents": 30000,
                "currency": "USD",
                "line_items": [
                    {
                        "id": "9a8b7c6d-0000-4000-8000-000000000001",
                        "description": "Development - API integration",
                        "quantity": "2",
                        "unit_price_cents": 5000,
                        "total_cents": 10000,
                    }
                ],
            }
        }


class SweepResultDTO(BaseModel):
    """Result of an overdue sweep"""

    updated_count: int
    swept_at: datetime


class BillingSummaryDTO(BaseModel):
    paid_revenue_cents: int
    pending_count: int
    overdue_count: int
    unbilled_work_cents: int


class InvoicePdfDTO(BaseModel):
    filename: str
    content: bytes


# ============ Payment plans ============


class CreatePaymentPlanCommandDTO(BaseModel):
    """
    Command DTO for offering a payment plan on an invoice

    The installment count range is checked by the use case so that it maps
    to INVALID_INSTALLMENT_COUNT.
    """

    invoice_id: str
    number_of_installments: int = Field(..., description="Number of installments (2-24)")
    frequency: PlanFrequency = Field(default=PlanFrequency.MONTHLY)

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": "6f1c2e9a-2f7b-4c1e-9d5e-0f3f5a1b2c3d",
                "number_of_installments": 3,
                "frequency": "monthly",
            }
        }


class AcceptPaymentPlanCommandDTO(BaseModel):
    """
    Command DTO for a customer accepting a payment plan

    customer_id, when given, must own the plan.
    """

    plan_id: str
    customer_id: Optional[str] = None


class PaymentPlanDTO(BaseModel):
    id: str
    invoice_id: str
    customer_id: str
    total_amount_cents: int
    installment_amount_cents: int
    number_of_installments: int
    frequency: str
    status: str
    installments_paid: int
    stripe_subscription_id: Optional[str] = None
    start_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, plan: PaymentPlan) -> "PaymentPlanDTO":
        return cls(
            id=plan.id,
            invoice_id=plan.invoice_id,
            customer_id=plan.customer_id,
            total_amount_cents=plan.total_amount_cents,
            installment_amount_cents=plan.installment_amount_cents,
            number_of_installments=plan.number_of_installments,
            frequency=plan.frequency.value,
            status=plan.status.value,
            installments_paid=plan.installments_paid,
            stripe_subscription_id=plan.stripe_subscription_id,
            start_date=plan.start_date,
            completed_at=plan.completed_at,
            cancelled_at=plan.cancelled_at,
            failure_reason=plan.failure_reason,
            created_at=plan.created_at,
        )


class AcceptPaymentPlanResponseDTO(BaseModel):
    payment_plan_id: str
    status: str
    checkout_session_id: str
    checkout_url: Optional[str] = None


# ============ Webhooks ============


class WebhookEventCommandDTO(BaseModel):
    """Raw webhook delivery as received over HTTP"""

    payload: bytes
    signature: Optional[str] = None


class WebhookHandlerOutcomeDTO(BaseModel):
    handler: str
    outcome: str = Field(..., description="applied, ignored, duplicate or error")
    payment_plan_id: Optional[str] = None
    error: Optional[str] = None


class WebhookResultDTO(BaseModel):
    event_id: Optional[str] = None
    event_type: str
    outcome: str = Field(..., description="applied, ignored, duplicate or error")
    handlers: List[WebhookHandlerOutcomeDTO] = Field(default_factory=list)
