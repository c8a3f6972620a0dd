"""Invoice Domain Entity

Tracks issued bills and their payment status.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Integer, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(BaseModel, table=True):
    """
    Invoice - Bill aggregating billed work for one customer

    Domain Rules:
    - invoice_number must be unique (INV-YYYY-NNNN)
    - Generated invoices start as pending (draft only for manual invoices)
    - Status transitions: draft -> pending -> paid | overdue, overdue -> paid
    - paid is terminal; an invoice can only be deleted while draft
    - total_amount_cents = subtotal_cents + tax_amount_cents
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_customer_id', 'customer_id'),
        Index('ix_invoices_status_due_date', 'status', 'due_date'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique invoice identifier (UUID)"
    )

    customer_id: str = Field(
        description="Billed customer"
    )

    project_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Project the invoice was generated for (optional)"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique invoice number (e.g., INV-2024-0001)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status (draft, pending, paid, overdue)"
    )

    issued_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when invoice was issued"
    )

    due_date: Optional[datetime] = Field(
        default=None,
        description="Payment due date"
    )

    subtotal_cents: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Sum of line totals in cents"
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(7, 4), nullable=False, default=0),
        description="Tax rate in percent"
    )

    tax_amount_cents: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Tax amount in cents"
    )

    total_amount_cents: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Total due in cents"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False, default="USD"),
        description="Currency code (ISO 4217)"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Free-text notes printed on the invoice"
    )

    paid_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when invoice was paid"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "6f1c2e9a-2f7b-4c1e-9d5e-0f3f5a1b2c3d",
                "customer_id": "c1d2e3f4-0000-4000-8000-000000000001",
                "project_id": "p1d2e3f4-0000-4000-8000-000000000001",
                "invoice_number": "INV-2024-0001",
                "status": "pending",
                "subtotal_cents": 30000,
                "tax_rate": "0",
                "tax_amount_cents": 0,
                "total_amount_cents": 30000,
                "currency": "USD",
                "issued_at": "2024-02-01T00:00:00Z",
                "due_date": "2024-03-02T00:00:00Z",
                "paid_at": None,
            }
        }
