"""SQLAlchemy Work Entry Repository Implementation

Implements the work ledger. The claim is a single conditional UPDATE so
that concurrent invoice generations for the same project serialize on the
row locks (or the SQLite writer lock) and the loser matches nothing.
"""

from typing import Optional, List, Tuple
from sqlalchemy import update, delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.work_entry_repository import WorkEntryRepository
from src.domain.billing_rate import BillingRate
from src.domain.money import line_total_cents
from src.domain.work_entry import WorkEntry


class SqlAlchemyWorkEntryRepository(WorkEntryRepository):
    """
    SQLAlchemy implementation of WorkEntryRepository

    Features:
    - Atomic claim via UPDATE ... WHERE invoice_id IS NULL
    - Billed entries cannot be deleted
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: WorkEntry) -> WorkEntry:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_id(self, entry_id: str) -> Optional[WorkEntry]:
        statement = select(WorkEntry).where(WorkEntry.id == entry_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list(
        self,
        project_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        unbilled_only: bool = False,
    ) -> List[WorkEntry]:
        statement = select(WorkEntry)

        if project_id:
            statement = statement.where(WorkEntry.project_id == project_id)
        if customer_id:
            statement = statement.where(WorkEntry.customer_id == customer_id)
        if unbilled_only:
            statement = statement.where(WorkEntry.invoice_id.is_(None))

        statement = statement.order_by(WorkEntry.recorded_at.desc())
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def delete(self, entry_id: str) -> bool:
        statement = (
            delete(WorkEntry)
            .where(WorkEntry.id == entry_id)
            .where(WorkEntry.invoice_id.is_(None))
        )
        result = await self.session.execute(statement)
        return result.rowcount > 0

    async def claim_unbilled(self, project_id: str, invoice_id: str) -> int:
        """
        Stamp every unbilled entry of the project with invoice_id

        Args:
            project_id: Project whose unbilled work is claimed
            invoice_id: Invoice being generated

        Returns:
            Number of entries claimed
        """
        statement = (
            update(WorkEntry)
            .where(WorkEntry.project_id == project_id)
            .where(WorkEntry.invoice_id.is_(None))
            .values(invoice_id=invoice_id)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def get_billed_with_rates(self, invoice_id: str) -> List[Tuple[WorkEntry, BillingRate]]:
        statement = (
            select(WorkEntry, BillingRate)
            .join(BillingRate, BillingRate.id == WorkEntry.rate_id)
            .where(WorkEntry.invoice_id == invoice_id)
            .order_by(WorkEntry.recorded_at)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return [(entry, rate) for entry, rate in result.all()]

    async def unbilled_value_cents(self) -> int:
        statement = (
            select(WorkEntry.quantity, BillingRate.rate_cents)
            .join(BillingRate, BillingRate.id == WorkEntry.rate_id)
            .where(WorkEntry.invoice_id.is_(None))
        )
        result = await self.session.execute(statement)
        return sum(line_total_cents(quantity, rate_cents) for quantity, rate_cents in result.all())
