"""SQLAlchemy Agent Cost Repository Implementation"""

from typing import Optional, List
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.agent_cost_repository import AgentCostRepository
from src.domain.agent_cost_entry import AgentCostEntry


class SqlAlchemyAgentCostRepository(AgentCostRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: AgentCostEntry) -> AgentCostEntry:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list(self, project_id: Optional[str] = None) -> List[AgentCostEntry]:
        statement = select(AgentCostEntry)

        if project_id:
            statement = statement.where(AgentCostEntry.project_id == project_id)

        statement = statement.order_by(AgentCostEntry.session_date.desc())
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def claim_unbilled(
        self, customer_id: str, invoice_id: str, project_id: Optional[str] = None
    ) -> int:
        statement = (
            update(AgentCostEntry)
            .where(AgentCostEntry.customer_id == customer_id)
            .where(AgentCostEntry.invoice_id.is_(None))
        )

        if project_id:
            statement = statement.where(AgentCostEntry.project_id == project_id)

        result = await self.session.execute(statement.values(invoice_id=invoice_id))
        return result.rowcount

    async def get_by_invoice_id(self, invoice_id: str) -> List[AgentCostEntry]:
        statement = (
            select(AgentCostEntry)
            .where(AgentCostEntry.invoice_id == invoice_id)
            .order_by(AgentCostEntry.session_date)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
