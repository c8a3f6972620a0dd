"""Processed Webhook Event Domain Entity

One row per (provider event id, handler) that changed local state. Written
in the same transaction as the handler's effects, so a redelivered event is
recognised even when it arrives long after the first delivery.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class ProcessedWebhookEvent(BaseModel, table=True):
    __tablename__ = "processed_webhook_events"
    __table_args__ = (
        UniqueConstraint('event_id', 'handler', name='uq_processed_webhook_events_event_handler'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    event_id: str = Field(
        sa_column=Column(String(255), nullable=False, index=True),
        description="Provider event id (e.g. evt_...)"
    )

    handler: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Handler that applied the event"
    )

    event_type: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Provider event type"
    )

    payment_plan_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Plan touched by the event, if any"
    )

    processed_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event was applied"
    )
