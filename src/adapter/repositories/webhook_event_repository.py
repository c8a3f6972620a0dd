"""SQLAlchemy Processed Webhook Event Repository Implementation"""

from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.webhook_event_repository import WebhookEventRepository
from src.domain.webhook_event import ProcessedWebhookEvent


class SqlAlchemyWebhookEventRepository(WebhookEventRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, event_id: str, handler: str) -> bool:
        statement = (
            select(func.count())
            .select_from(ProcessedWebhookEvent)
            .where(ProcessedWebhookEvent.event_id == event_id)
            .where(ProcessedWebhookEvent.handler == handler)
        )
        result = await self.session.execute(statement)
        return result.scalar_one() > 0

    async def create(self, event: ProcessedWebhookEvent) -> ProcessedWebhookEvent:
        self.session.add(event)
        await self.session.flush()
        return event
