"""Billing Rate Domain Entity

Named unit price used to value work entries.
"""

from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Integer, String, Text
from src.domain.base import BaseModel, generate_uuid


class BillingRate(BaseModel, table=True):
    """
    Billing Rate - Catalog entry (e.g. "Development hour" at 15000 cents)

    Domain Rules:
    - code is unique
    - rate_cents is fixed once any work entry references the rate
      (line items snapshot the unit price, so billed history never moves)
    - inactive rates cannot be used for new work entries
    """

    __tablename__ = "billing_rates"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique rate identifier (UUID)"
    )

    code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique short code (e.g. DEV_HOUR)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Display name used on invoice lines"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Optional longer description"
    )

    unit_label: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Unit label (hour, page, item, ...)"
    )

    rate_cents: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Unit price in minor currency units"
    )

    is_active: bool = Field(
        default=True,
        description="Whether the rate can be used for new work"
    )
