"""Invoice Line Domain Entity

Tracks individual line items within an invoice.
"""

from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - Individual line item within an invoice

    Domain Rules:
    - Each line item belongs to exactly one invoice (deleted with it)
    - unit_price_cents is a snapshot of the rate at billing time
    - total_cents = round(quantity * unit_price_cents)
    - work_entry_id / agent_cost_entry_id point at the billed source;
      both are NULL for ad-hoc items
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique invoice line identifier (UUID)"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    work_entry_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True, unique=True),
        description="Billed work entry (unique: an entry is billed once)"
    )

    agent_cost_entry_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True, unique=True),
        description="Billed agent cost entry"
    )

    description: str = Field(
        sa_column=Column(Text, nullable=False),
        description="Line item description (e.g., 'Development - API work')"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Quantity (e.g., hours, units)"
    )

    unit_price_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Price per unit in cents"
    )

    total_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Line total in cents"
    )
