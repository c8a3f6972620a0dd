"""Request schemas for Billing API

Pydantic models for validating incoming HTTP requests. Defaults that come
from configuration are applied here, so command DTOs stay config-free.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from config import ApplicationConfig
from src.domain.invoice import InvoiceStatus
from src.domain.payment_plan import PlanFrequency


class UpdateBillingRateRequestSchema(BaseModel):
    """
    Request schema for updating a billing rate

    Used for PATCH /billing/rates/{rate_id}. Omitted fields are unchanged.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    unit_label: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    rate_cents: Optional[int] = Field(
        default=None,
        ge=0,
        description="New unit price; rejected while work entries reference the rate"
    )
    is_active: Optional[bool] = None


class RecordWorkEntryRequestSchema(BaseModel):
    """
    Request schema for recording billable work

    Used for POST /billing/work-entries endpoint.
    """

    project_id: str = Field(..., min_length=1)
    rate_id: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, description="Quantity in rate units (must be > 0)")
    description: Optional[str] = None
    recorded_at: Optional[datetime] = None

    @field_validator('quantity')
    @classmethod
    def validate_quantity(cls, v):
        """Quantities are stored with six decimal places"""
        if v.as_tuple().exponent < -6:
            raise ValueError("Quantity supports at most 6 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "p1d2e3f4-0000-4000-8000-000000000001",
                "rate_id": "r1d2e3f4-0000-4000-8000-000000000001",
                "quantity": "2.5",
                "description": "API integration"
            }
        }


class RecordAgentCostRequestSchema(BaseModel):
    """Request schema for POST /billing/agent-costs"""

    description: str = Field(..., min_length=1)
    agent_cost_cents: int = Field(..., ge=0)
    markup_percent: int = Field(default=ApplicationConfig.AGENT_COST_DEFAULT_MARKUP_PERCENT, ge=0)
    project_id: Optional[str] = None
    customer_id: Optional[str] = None
    session_date: Optional[datetime] = None


class GenerateInvoiceRequestSchema(BaseModel):
    """
    Request schema for generating an invoice from unbilled work

    Used for POST /billing/invoices/generate endpoint.
    """

    project_id: str = Field(..., min_length=1)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Tax rate in percent")
    due_days: int = Field(default=ApplicationConfig.DEFAULT_DUE_DAYS, gt=0)
    currency: str = Field(default=ApplicationConfig.DEFAULT_CURRENCY, min_length=3, max_length=3)
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "project_id": "p1d2e3f4-0000-4000-8000-000000000001",
                "tax_rate": "8.25",
                "due_days": 30
            }
        }


class GenerateAgentCostInvoiceRequestSchema(BaseModel):
    """Request schema for POST /billing/invoices/generate-from-agent-costs"""

    customer_id: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    due_days: int = Field(default=ApplicationConfig.DEFAULT_DUE_DAYS, gt=0)
    currency: str = Field(default=ApplicationConfig.DEFAULT_CURRENCY, min_length=3, max_length=3)


class SetInvoiceStatusRequestSchema(BaseModel):
    status: InvoiceStatus


class CreatePaymentPlanRequestSchema(BaseModel):
    """
    Request schema for offering a payment plan

    Used for POST /billing/invoices/{invoice_id}/payment-plan endpoint.
    """

    number_of_installments: int = Field(..., description="Number of installments (2-24)")
    frequency: PlanFrequency = Field(default=PlanFrequency.MONTHLY)

    class Config:
        json_schema_extra = {
            "example": {
                "number_of_installments": 3,
                "frequency": "monthly"
            }
        }


class AcceptPaymentPlanRequestSchema(BaseModel):
    """Request schema for POST /billing/payment-plans/{plan_id}/accept"""

    customer_id: Optional[str] = Field(
        default=None,
        description="Accepting customer; must own the plan when given"
    )
