"""Customer Domain Entity

Billing identity of a client. Only the fields the billing engine needs are
modelled here; profile management lives elsewhere.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid


class Customer(BaseModel, table=True):
    """
    Customer - Party that receives invoices and pays payment plans

    Domain Rules:
    - stripe_customer_id is created lazily the first time a plan is accepted
      and reused afterwards
    """

    __tablename__ = "customers"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique customer identifier (UUID)"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Customer display name"
    )

    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Billing email address"
    )

    stripe_customer_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True),
        description="Customer id at the payment provider"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Customer creation timestamp"
    )
