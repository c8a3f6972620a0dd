"""Payment Plan Domain Entity

Installment schedule that pays off one invoice through a recurring charge
at the payment provider.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Integer, String, Text
from src.domain.base import BaseModel, generate_uuid


class PaymentPlanStatus(str, Enum):
    """Payment plan status types"""
    PENDING = "pending"                              # Offered, not yet accepted
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # Checkout started, webhook not seen
    ACTIVE = "active"                                # Subscription confirmed by provider
    COMPLETED = "completed"                          # All installments paid
    CANCELLED = "cancelled"
    FAILED = "failed"                                # Provider error while accepting


class PlanFrequency(str, Enum):
    """Installment frequency"""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def interval(self) -> str:
        return "month" if self is PlanFrequency.MONTHLY else "week"

    @property
    def interval_count(self) -> int:
        return 2 if self is PlanFrequency.BIWEEKLY else 1

    @property
    def days(self) -> int:
        return {
            PlanFrequency.WEEKLY: 7,
            PlanFrequency.BIWEEKLY: 14,
            PlanFrequency.MONTHLY: 30,
        }[self]


LIVE_PLAN_STATUSES = (
    PaymentPlanStatus.PENDING,
    PaymentPlanStatus.AWAITING_CONFIRMATION,
    PaymentPlanStatus.ACTIVE,
)

TERMINAL_PLAN_STATUSES = (
    PaymentPlanStatus.COMPLETED,
    PaymentPlanStatus.CANCELLED,
    PaymentPlanStatus.FAILED,
)


class PaymentPlan(BaseModel, table=True):
    """
    Payment Plan - Installments against an invoice

    Domain Rules:
    - At most one live plan (pending, awaiting_confirmation, active) per invoice
    - installment_amount_cents = ceil(total / installments); the remainder
      is not reconciled against the invoice total
    - installments_paid starts at 0, never decreases and never exceeds
      number_of_installments
    - Activation happens only through the checkout-completed webhook
    - completed, cancelled and failed are terminal
    """

    __tablename__ = "payment_plans"
    __table_args__ = (
        Index('ix_payment_plans_invoice_status', 'invoice_id', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique payment plan identifier (UUID)"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Invoice paid off by this plan"
    )

    customer_id: str = Field(
        index=True,
        description="Customer paying the plan"
    )

    total_amount_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Invoice total at plan creation"
    )

    installment_amount_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Amount charged per installment"
    )

    number_of_installments: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Number of installments (2-24)"
    )

    frequency: PlanFrequency = Field(
        default=PlanFrequency.MONTHLY,
        description="Installment frequency (weekly, biweekly, monthly)"
    )

    status: PaymentPlanStatus = Field(
        default=PaymentPlanStatus.PENDING,
        description="Plan status"
    )

    stripe_subscription_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, index=True),
        description="Provider subscription id (set on activation)"
    )

    stripe_price_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Provider recurring price id"
    )

    stripe_checkout_session_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Provider checkout session started on acceptance"
    )

    installments_paid: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Installments confirmed paid"
    )

    start_date: Optional[datetime] = Field(
        default=None,
        description="Set once, when the provider confirms the subscription"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the final installment was recorded"
    )

    cancelled_at: Optional[datetime] = Field(
        default=None,
        description="When the plan was cancelled"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Provider error that moved the plan to failed"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Plan creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_PLAN_STATUSES

    @property
    def is_fully_paid(self) -> bool:
        return self.installments_paid >= self.number_of_installments

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "0b9f3c1e-7d2a-4e55-b3d1-3a9c7e2f1d00",
                "invoice_id": "6f1c2e9a-2f7b-4c1e-9d5e-0f3f5a1b2c3d",
                "customer_id": "c1d2e3f4-0000-4000-8000-000000000001",
                "total_amount_cents": 10000,
                "installment_amount_cents": 3334,
                "number_of_installments": 3,
                "frequency": "monthly",
                "status": "active",
                "stripe_subscription_id": "sub_123",
                "installments_paid": 1,
                "start_date": "2024-02-01T00:00:00Z",
            }
        }


# At most one pending, awaiting or active plan per invoice. Concurrent
# creates that both pass the read check collide here instead.
Index(
    'uq_payment_plans_live_invoice',
    PaymentPlan.__table__.c.invoice_id,
    unique=True,
    sqlite_where=PaymentPlan.__table__.c.status.in_(LIVE_PLAN_STATUSES),
    postgresql_where=PaymentPlan.__table__.c.status.in_(LIVE_PLAN_STATUSES),
)
