"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Optional, List
from datetime import datetime
from sqlalchemy import update, delete
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional row-level locking

        Args:
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        statement = select(Invoice).where(Invoice.id == invoice_id)

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list(
        self,
        customer_id: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Invoice]:
        statement = select(Invoice)

        if customer_id:
            statement = statement.where(Invoice.customer_id == customer_id)
        if status:
            statement = statement.where(Invoice.status == status)

        statement = statement.order_by(Invoice.created_at.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count(self, status: Optional[InvoiceStatus] = None) -> int:
        statement = select(func.count()).select_from(Invoice)

        if status:
            statement = statement.where(Invoice.status == status)

        result = await self.session.execute(statement)
        return result.scalar_one()

    async def update(self, invoice: Invoice) -> Invoice:
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def update_status(self, invoice_id: str, status: InvoiceStatus) -> Optional[Invoice]:
        invoice = await self.get_by_id(invoice_id, for_update=True)
        if not invoice:
            return None

        invoice.status = status
        if status == InvoiceStatus.PAID and invoice.paid_at is None:
            invoice.paid_at = datetime.utcnow()

        return await self.update(invoice)

    async def delete(self, invoice: Invoice) -> None:
        await self.session.execute(delete(InvoiceLine).where(InvoiceLine.invoice_id == invoice.id))
        await self.session.delete(invoice)
        await self.session.flush()

    async def generate_invoice_number(self, year: int) -> str:
        """
        Generate the next invoice number

        Format: INV-YYYY-NNNN (e.g., INV-2024-0001)

        Args:
            year: Issue year

        Returns:
            Unused invoice number string
        """
        sequence = await self.count() + 1

        while True:
            invoice_number = f"INV-{year}-{sequence:04d}"
            statement = (
                select(func.count())
                .select_from(Invoice)
                .where(Invoice.invoice_number == invoice_number)
            )
            result = await self.session.execute(statement)
            if result.scalar_one() == 0:
                return invoice_number
            sequence += 1

    async def mark_overdue(self, now: datetime) -> int:
        statement = (
            update(Invoice)
            .where(Invoice.status == InvoiceStatus.PENDING)
            .where(Invoice.due_date.is_not(None))
            .where(Invoice.due_date < now)
            .values(status=InvoiceStatus.OVERDUE, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def paid_revenue_cents(self) -> int:
        statement = (
            select(func.coalesce(func.sum(Invoice.total_amount_cents), 0))
            .where(Invoice.status == InvoiceStatus.PAID)
        )
        result = await self.session.execute(statement)
        return int(result.scalar_one())
