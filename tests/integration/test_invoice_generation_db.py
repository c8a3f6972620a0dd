"""Integration tests for invoice generation and lifecycle against SQLite

Tests cover:
- Generating an invoice from recorded work marks every entry billed
- Regenerating with nothing new returns no invoice
- Concurrent generations for one project never bill an entry twice
- Sequential invoice numbers
- Overdue sweep idempotence and lazy sweep on read
- Billed entries and referenced rate prices are frozen
"""

import asyncio
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlmodel import select
from src.adapter.repositories import (
    SqlAlchemyBillingRateRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyProjectRepository,
    SqlAlchemyWorkEntryRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing import (
    DeleteWorkEntry,
    GenerateInvoiceFromWork,
    GetInvoice,
    MarkOverdueInvoices,
    RecordWorkEntry,
    UpdateBillingRate,
)
from src.app.use_cases.billing.dtos import (
    GenerateInvoiceCommandDTO,
    RecordWorkEntryCommandDTO,
    UpdateBillingRateCommandDTO,
)
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine
from src.domain.work_entry import WorkEntry


async def record_work(session, project_id, rate_id, quantity, description=None):
    use_case = RecordWorkEntry(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyWorkEntryRepository(session),
        SqlAlchemyProjectRepository(session),
        SqlAlchemyBillingRateRepository(session),
    )
    result = await use_case.execute(
        RecordWorkEntryCommandDTO(
            project_id=project_id, rate_id=rate_id, quantity=Decimal(quantity), description=description
        )
    )
    assert result.is_ok(), result
    return result.value


async def generate(session, project_id, **kwargs):
    use_case = GenerateInvoiceFromWork(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyProjectRepository(session),
        SqlAlchemyWorkEntryRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
    )
    return await use_case.execute(GenerateInvoiceCommandDTO(project_id=project_id, **kwargs))


@pytest.mark.asyncio
class TestInvoiceGenerationIntegration:
    async def test_generate_bills_all_unbilled_work(self, db_session, session_factory, seed):
        await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "2", "API work")
        await record_work(db_session, seed["project_id"], seed["design_rate_id"], "1")

        result = await generate(db_session, seed["project_id"])

        assert result.is_ok()
        invoice = result.value
        assert invoice.subtotal_cents == 20000
        assert invoice.total_amount_cents == 20000
        assert invoice.status == "pending"
        assert invoice.customer_id == seed["customer_id"]
        assert len(invoice.line_items) == 2

        async with session_factory() as session:
            entries = (await session.execute(select(WorkEntry))).scalars().all()
            lines = (await session.execute(select(InvoiceLine))).scalars().all()

        assert all(entry.invoice_id == invoice.id for entry in entries)
        assert sorted(line.work_entry_id for line in lines) == sorted(entry.id for entry in entries)

    async def test_three_two_hour_entries(self, db_session, seed):
        entries = [await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "2") for _ in range(3)]

        result = await generate(db_session, seed["project_id"])

        assert result.value.subtotal_cents == 30000
        assert result.value.total_amount_cents == 30000
        assert sorted(line.work_entry_id for line in result.value.line_items) == sorted(e.id for e in entries)

    async def test_second_generation_has_nothing_to_bill(self, db_session, seed):
        await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "1")
        first = await generate(db_session, seed["project_id"])

        second = await generate(db_session, seed["project_id"])

        assert first.value is not None
        assert second.is_ok()
        assert second.value is None
        invoices = (await db_session.execute(select(Invoice))).scalars().all()
        assert len(invoices) == 1

    async def test_later_work_goes_on_next_invoice(self, db_session, seed):
        await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "1")
        first = await generate(db_session, seed["project_id"])
        await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "3")

        second = await generate(db_session, seed["project_id"], tax_rate=Decimal("10"))

        assert second.value.subtotal_cents == 15000
        assert second.value.tax_amount_cents == 1500
        year = datetime.utcnow().year
        assert first.value.invoice_number == f"INV-{year}-0001"
        assert second.value.invoice_number == f"INV-{year}-0002"

    async def test_unknown_project_returns_none(self, db_session, seed):
        result = await generate(db_session, "no-such-project")

        assert result.is_ok()
        assert result.value is None

    async def test_concurrent_generation_bills_each_entry_once(self, session_factory, seed):
        async with session_factory() as session:
            for _ in range(5):
                await record_work(session, seed["project_id"], seed["dev_rate_id"], "1")

        async def run():
            async with session_factory() as session:
                return await generate(session, seed["project_id"])

        results = await asyncio.gather(run(), run())

        invoices_created = [r.value for r in results if r.is_ok() and r.value is not None]
        assert len(invoices_created) == 1
        assert invoices_created[0].subtotal_cents == 25000

        async with session_factory() as session:
            invoices = (await session.execute(select(Invoice))).scalars().all()
            lines = (await session.execute(select(InvoiceLine))).scalars().all()
            entries = (await session.execute(select(WorkEntry))).scalars().all()

        assert len(invoices) == 1
        assert len(lines) == 5
        assert len({line.work_entry_id for line in lines}) == 5
        assert {entry.invoice_id for entry in entries} == {invoices[0].id}


@pytest.mark.asyncio
class TestInvoiceLifecycleIntegration:
    async def _invoice(self, session, number, status, due_date):
        invoice = Invoice(
            customer_id="cust-1",
            invoice_number=number,
            status=status,
            issued_at=datetime.utcnow() - timedelta(days=40),
            due_date=due_date,
            subtotal_cents=1000,
            total_amount_cents=1000,
        )
        session.add(invoice)
        await session.commit()
        return invoice

    async def test_sweep_marks_only_past_due_pending(self, db_session, session_factory, seed):
        past = datetime.utcnow() - timedelta(days=1)
        future = datetime.utcnow() + timedelta(days=1)
        late = await self._invoice(db_session, "INV-2024-0001", InvoiceStatus.PENDING, past)
        current = await self._invoice(db_session, "INV-2024-0002", InvoiceStatus.PENDING, future)
        paid = await self._invoice(db_session, "INV-2024-0003", InvoiceStatus.PAID, past)
        draft = await self._invoice(db_session, "INV-2024-0004", InvoiceStatus.DRAFT, past)

        use_case = MarkOverdueInvoices(SqlAlchemyUnitOfWork(db_session), SqlAlchemyInvoiceRepository(db_session))
        first = await use_case.execute()
        second = await use_case.execute()

        assert first.value.updated_count == 1
        assert second.value.updated_count == 0

        async with session_factory() as session:
            repo = SqlAlchemyInvoiceRepository(session)
            assert (await repo.get_by_id(late.id)).status == InvoiceStatus.OVERDUE
            assert (await repo.get_by_id(current.id)).status == InvoiceStatus.PENDING
            assert (await repo.get_by_id(paid.id)).status == InvoiceStatus.PAID
            assert (await repo.get_by_id(draft.id)).status == InvoiceStatus.DRAFT

    async def test_read_applies_sweep(self, db_session, seed):
        late = await self._invoice(
            db_session, "INV-2024-0009", InvoiceStatus.PENDING, datetime.utcnow() - timedelta(hours=1)
        )

        result = await GetInvoice(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyInvoiceRepository(db_session),
            SqlAlchemyInvoiceLineRepository(db_session),
        ).execute(late.id)

        assert result.is_ok()
        assert result.value.status == "overdue"


@pytest.mark.asyncio
class TestLedgerFreezeIntegration:
    async def test_billed_entry_cannot_be_deleted(self, db_session, seed):
        entry = await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "1")
        await generate(db_session, seed["project_id"])

        result = await DeleteWorkEntry(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyWorkEntryRepository(db_session)
        ).execute(entry.id)

        assert result.is_err()
        assert result.error.code == "WORK_ENTRY_ALREADY_BILLED"

    async def test_unbilled_entry_deleted(self, db_session, seed):
        entry = await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "1")

        result = await DeleteWorkEntry(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyWorkEntryRepository(db_session)
        ).execute(entry.id)

        assert result.is_ok()
        assert await SqlAlchemyWorkEntryRepository(db_session).get_by_id(entry.id) is None

    async def test_referenced_rate_price_frozen(self, db_session, seed):
        await record_work(db_session, seed["project_id"], seed["dev_rate_id"], "1")

        result = await UpdateBillingRate(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyBillingRateRepository(db_session)
        ).execute(UpdateBillingRateCommandDTO(rate_id=seed["dev_rate_id"], rate_cents=9999))

        assert result.is_err()
        assert result.error.code == "BILLING_RATE_IN_USE"
