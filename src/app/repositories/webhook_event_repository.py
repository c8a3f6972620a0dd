"""Processed Webhook Event Repository Interface"""

from abc import ABC, abstractmethod
from src.domain.webhook_event import ProcessedWebhookEvent


class WebhookEventRepository(ABC):
    @abstractmethod
    async def exists(self, event_id: str, handler: str) -> bool:
        """
        Check whether a handler already applied an event

        Args:
            event_id: Provider event id
            handler: Handler name

        Returns:
            True if the pair was recorded
        """
        pass

    @abstractmethod
    async def create(self, event: ProcessedWebhookEvent) -> ProcessedWebhookEvent:
        """
        Record an event as applied

        Raises:
            sqlalchemy.exc.IntegrityError: the pair was recorded concurrently
        """
        pass
