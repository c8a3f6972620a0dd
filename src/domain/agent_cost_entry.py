"""Agent Cost Entry Domain Entity

Cost-plus billing source: the raw cost of an AI agent session plus a markup.
Shares the write-once invoice_id claim rule with WorkEntry.
"""

from datetime import datetime
from typing import Optional
from decimal import Decimal, ROUND_HALF_UP
from sqlmodel import Field, Column
from sqlalchemy import Integer, String, Text
from src.domain.base import BaseModel, generate_uuid
from src.domain.work_entry import BillingState


class AgentCostEntry(BaseModel, table=True):
    __tablename__ = "agent_cost_entries"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique agent cost identifier (UUID)"
    )

    project_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Optional project the session belongs to"
    )

    customer_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Customer the cost is billed to"
    )

    description: str = Field(
        sa_column=Column(Text, nullable=False),
        description="What the session produced"
    )

    agent_cost_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Raw cost in cents"
    )

    markup_percent: int = Field(
        default=50,
        sa_column=Column(Integer, nullable=False, default=50),
        description="Markup applied on top of the raw cost"
    )

    client_charge_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Amount billed to the client"
    )

    session_date: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the agent session took place"
    )

    invoice_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True, index=True),
        description="Invoice that billed this entry (NULL = unbilled)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Entry creation timestamp"
    )

    @property
    def billing_state(self) -> BillingState:
        return BillingState.UNBILLED if self.invoice_id is None else BillingState.BILLED

    @staticmethod
    def compute_client_charge(agent_cost_cents: int, markup_percent: int) -> int:
        """round(cost * (1 + markup/100)), half away from zero"""
        charge = Decimal(agent_cost_cents) * (Decimal(100) + Decimal(markup_percent)) / Decimal(100)
        return int(charge.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
