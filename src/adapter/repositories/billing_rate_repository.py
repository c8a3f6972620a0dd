"""SQLAlchemy Billing Rate Repository Implementation

Implements the rate catalog using SQLAlchemy async session.
"""

from typing import Optional, List
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.billing_rate_repository import BillingRateRepository
from src.domain.billing_rate import BillingRate
from src.domain.work_entry import WorkEntry


class SqlAlchemyBillingRateRepository(BillingRateRepository):
    """
    SQLAlchemy implementation of BillingRateRepository
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, rate: BillingRate) -> BillingRate:
        self.session.add(rate)
        await self.session.flush()
        await self.session.refresh(rate)
        return rate

    async def get_by_id(self, rate_id: str) -> Optional[BillingRate]:
        statement = select(BillingRate).where(BillingRate.id == rate_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Optional[BillingRate]:
        statement = select(BillingRate).where(BillingRate.code == code)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list(self, active_only: bool = False) -> List[BillingRate]:
        statement = select(BillingRate)

        if active_only:
            statement = statement.where(BillingRate.is_active == True)  # noqa: E712

        statement = statement.order_by(BillingRate.name)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def update(self, rate: BillingRate) -> BillingRate:
        self.session.add(rate)
        await self.session.flush()
        await self.session.refresh(rate)
        return rate

    async def is_referenced(self, rate_id: str) -> bool:
        """
        Check whether any work entry uses the rate

        Args:
            rate_id: Rate ID

        Returns:
            True if at least one work entry references the rate
        """
        statement = (
            select(func.count())
            .select_from(WorkEntry)
            .where(WorkEntry.rate_id == rate_id)
        )
        result = await self.session.execute(statement)
        return result.scalar_one() > 0
