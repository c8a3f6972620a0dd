"""Work Entry Domain Entity

Append-only record of billable work. The nullable invoice_id is the billed
flag: it moves from NULL to a fixed invoice id exactly once.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class BillingState(str, Enum):
    """Derived billing state of a ledger entry"""
    UNBILLED = "unbilled"
    BILLED = "billed"


class WorkEntry(BaseModel, table=True):
    """
    Work Entry - quantity x rate of recorded work

    Domain Rules:
    - Created unbilled (invoice_id is NULL)
    - Claimed by the invoice generator with a conditional update
      (WHERE invoice_id IS NULL); once set, invoice_id never changes
    - Only unbilled entries may be deleted
    """

    __tablename__ = "work_entries"
    __table_args__ = (
        Index('ix_work_entries_project_invoice', 'project_id', 'invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique work entry identifier (UUID)"
    )

    project_id: str = Field(
        description="Project the work was done for"
    )

    customer_id: str = Field(
        index=True,
        description="Customer the work is billed to"
    )

    rate_id: str = Field(
        index=True,
        description="Billing rate used to value the work"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Quantity in rate units (precision: 18,6)"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Free-text description of the work"
    )

    invoice_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True, index=True),
        description="Invoice that billed this entry (NULL = unbilled)"
    )

    recorded_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the work was recorded"
    )

    @property
    def billing_state(self) -> BillingState:
        return BillingState.UNBILLED if self.invoice_id is None else BillingState.BILLED

    @property
    def is_billed(self) -> bool:
        return self.invoice_id is not None
