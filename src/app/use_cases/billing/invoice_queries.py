"""Invoice Read Use Cases

Every read that reports invoice status runs the overdue sweep first.
"""

from datetime import datetime
from typing import List
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.work_entry_repository import WorkEntryRepository
from src.domain.invoice import InvoiceStatus
from .dtos import BillingSummaryDTO, InvoiceDTO, ListInvoicesQueryDTO


async def sweep_overdue(uow: UnitOfWork, invoice_repo: InvoiceRepository) -> None:
    await invoice_repo.mark_overdue(datetime.utcnow())
    await uow.commit()


class GetInvoice:
    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    async def execute(self, invoice_id: str) -> Result[InvoiceDTO]:
        try:
            await sweep_overdue(self.uow, self.invoice_repo)

            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)
            return Return.ok(InvoiceDTO.from_entity(invoice, lines))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="GET_INVOICE_FAILED", message="Failed to retrieve invoice", reason=str(e))
            )


class ListInvoices:
    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, query: ListInvoicesQueryDTO) -> Result[List[InvoiceDTO]]:
        try:
            await sweep_overdue(self.uow, self.invoice_repo)

            invoices = await self.invoice_repo.list(
                customer_id=query.customer_id,
                status=query.status,
                limit=query.limit,
                offset=query.offset,
            )
            return Return.ok([InvoiceDTO.from_entity(invoice) for invoice in invoices])

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="LIST_INVOICES_FAILED", message="Failed to list invoices", reason=str(e))
            )


class GetBillingSummary:
    """
    Use Case: Dashboard totals

    Returns paid revenue, pending and overdue counts, and the value of work
    that has not been invoiced yet.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        work_entry_repo: WorkEntryRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.work_entry_repo = work_entry_repo

    async def execute(self) -> Result[BillingSummaryDTO]:
        try:
            await sweep_overdue(self.uow, self.invoice_repo)

            summary = BillingSummaryDTO(
                paid_revenue_cents=await self.invoice_repo.paid_revenue_cents(),
                pending_count=await self.invoice_repo.count(InvoiceStatus.PENDING),
                overdue_count=await self.invoice_repo.count(InvoiceStatus.OVERDUE),
                unbilled_work_cents=await self.work_entry_repo.unbilled_value_cents(),
            )
            return Return.ok(summary)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="BILLING_SUMMARY_FAILED", message="Failed to compute billing summary", reason=str(e))
            )
