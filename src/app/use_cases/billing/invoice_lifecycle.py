"""Invoice Lifecycle Use Cases

Status transitions: draft -> pending -> {paid, overdue}, overdue -> paid.
paid is terminal. Overdue-ness is applied lazily by the sweep, which every
status-reporting read runs first.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceDTO, SetInvoiceStatusCommandDTO, SweepResultDTO

logger = logging.getLogger(__name__)


class MarkOverdueInvoices:
    """
    Use Case: Overdue sweep

    Business Rules:
    1. Every pending invoice with due_date < now becomes overdue
    2. Single conditional UPDATE, so repeated runs are idempotent and
       already-overdue invoices are never rewritten
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self) -> Result[SweepResultDTO]:
        try:
            now = datetime.utcnow()
            updated = await self.invoice_repo.mark_overdue(now)
            await self.uow.commit()

            if updated:
                logger.info(f"Overdue sweep marked {updated} invoice(s) overdue")

            return Return.ok(SweepResultDTO(updated_count=updated, swept_at=now))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="OVERDUE_SWEEP_FAILED", message="Failed to mark overdue invoices", reason=str(e))
            )


class SetInvoiceStatus:
    """
    Use Case: Admin-driven status change (e.g. manual payment receipt)

    Business Rules:
    1. A paid invoice never leaves paid
    2. Moving to paid stamps paid_at; leaving draft stamps issued_at
    3. Setting the current status is a no-op
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, command: SetInvoiceStatusCommandDTO) -> Result[InvoiceDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(command.invoice_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
                )

            if invoice.status == command.status:
                return Return.ok(InvoiceDTO.from_entity(invoice))

            if invoice.status == InvoiceStatus.PAID:
                return Return.err(
                    Error(
                        code="INVALID_STATUS_TRANSITION",
                        message=f"Invoice {invoice.invoice_number} is paid and cannot move to "
                                f"{command.status.value}",
                        reason="paid is terminal",
                    )
                )

            now = datetime.utcnow()
            if invoice.status == InvoiceStatus.DRAFT and invoice.issued_at is None:
                invoice.issued_at = now
            if command.status == InvoiceStatus.PAID:
                invoice.paid_at = now

            previous = invoice.status
            invoice.status = command.status
            updated = await self.invoice_repo.update(invoice)
            await self.uow.commit()

            logger.info(
                f"Invoice {updated.invoice_number} status {previous.value} -> {updated.status.value}"
            )
            return Return.ok(InvoiceDTO.from_entity(updated))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="SET_INVOICE_STATUS_FAILED", message="Failed to update invoice status", reason=str(e))
            )


class DeleteInvoice:
    """
    Use Case: Delete an invoice

    Business Rules:
    1. Only draft invoices can be deleted; line items go with them
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, invoice_id: str) -> Result[None]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            if invoice.status != InvoiceStatus.DRAFT:
                return Return.err(
                    Error(
                        code="INVOICE_NOT_DRAFT",
                        message=f"Invoice {invoice.invoice_number} is {invoice.status.value}; "
                                f"only draft invoices can be deleted",
                    )
                )

            await self.invoice_repo.delete(invoice)
            await self.uow.commit()

            logger.info(f"Deleted draft invoice {invoice.invoice_number}")
            return Return.ok(None)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="DELETE_INVOICE_FAILED", message="Failed to delete invoice", reason=str(e))
            )
