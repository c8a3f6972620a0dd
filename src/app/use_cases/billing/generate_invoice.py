"""Invoice Generation Use Cases

Turns unbilled ledger entries into a pending invoice. Entries are claimed
with a single conditional UPDATE before anything else is written, so two
concurrent generations for the same project can never bill an entry twice:
the second one claims nothing and returns no invoice.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, TypeVar
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.agent_cost_repository import AgentCostRepository
from src.app.repositories.customer_repository import CustomerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.project_repository import ProjectRepository
from src.app.repositories.work_entry_repository import WorkEntryRepository
from src.domain.base import generate_uuid
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine
from src.domain.money import line_total_cents, tax_cents
from .dtos import GenerateAgentCostInvoiceCommandDTO, GenerateInvoiceCommandDTO, InvoiceDTO

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVOICE_NUMBER_ATTEMPTS = 2


async def retry_on_number_collision(uow: UnitOfWork, generate: Callable[[], Awaitable[T]], label: str) -> T:
    """
    Run one generation attempt, retrying once if its invoice number was
    taken by a concurrent generation

    The rollback releases the claim, so the retry claims again from scratch.
    """
    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        try:
            return await generate()
        except IntegrityError:
            await uow.rollback()
            if attempt == INVOICE_NUMBER_ATTEMPTS:
                raise
            logger.warning(f"Invoice number for {label} was taken concurrently; retrying")


async def notify_invoice_created(
    notification_service: Optional[NotificationService], invoice: Invoice
) -> None:
    """Send the invoice-created notification; failures are logged only"""
    if notification_service is None:
        return
    try:
        await notification_service.send_invoice_created(invoice)
    except Exception as e:
        logger.warning(f"Invoice notification failed for {invoice.invoice_number}: {e}")


class GenerateInvoiceFromWork:
    """
    Use Case: Invoice a project's unbilled work

    Business Rules:
    1. Unknown project or no unbilled work -> no invoice (Ok(None)), not an error
    2. Each unbilled entry is claimed exactly once (UPDATE ... WHERE invoice_id IS NULL)
    3. line total = round(quantity x rate), unit price snapshotted from the rate
    4. subtotal = sum of line totals, tax = round(subtotal x tax_rate / 100)
    5. Invoice is created pending, issued now, due after due_days
    6. Claim, invoice and lines commit together; any failure rolls all back
    7. An invoice number taken by a concurrent generation rolls back and
       the whole generation is retried once

    Flow:
    1. Resolve project
    2. Claim unbilled entries for a fresh invoice id
    3. Re-read claimed entries with their rates
    4. Build line items and totals
    5. Allocate invoice number
    6. Persist invoice and lines, commit
    7. Notify customer
    """

    def __init__(
        self,
        uow: UnitOfWork,
        project_repo: ProjectRepository,
        work_entry_repo: WorkEntryRepository,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.project_repo = project_repo
        self.work_entry_repo = work_entry_repo
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.notification_service = notification_service

    async def execute(self, command: GenerateInvoiceCommandDTO) -> Result[Optional[InvoiceDTO]]:
        """
        Execute invoice generation

        Args:
            command: GenerateInvoiceCommandDTO with project_id, tax_rate, due_days

        Returns:
            Result[Optional[InvoiceDTO]]: the new invoice, None when there was
            nothing to bill, or an error
        """
        try:
            return await retry_on_number_collision(
                self.uow, lambda: self._generate(command), f"project {command.project_id}"
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice generation failed for project {command.project_id}: {e}")
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_FAILED",
                    message="Failed to generate invoice",
                    reason=str(e),
                )
            )

    async def _generate(self, command: GenerateInvoiceCommandDTO) -> Result[Optional[InvoiceDTO]]:
        # Step 1: Resolve project
        project = await self.project_repo.get_by_id(command.project_id)
        if not project:
            logger.info(f"No invoice generated: project {command.project_id} not found")
            return Return.ok(None)

        # Step 2: Claim unbilled entries
        invoice_id = generate_uuid()
        claimed = await self.work_entry_repo.claim_unbilled(project.id, invoice_id)

        if claimed == 0:
            await self.uow.rollback()
            logger.info(f"No invoice generated: project {project.id} has no unbilled work")
            return Return.ok(None)

        # Step 3: Re-read what was claimed
        billed = await self.work_entry_repo.get_billed_with_rates(invoice_id)
        if len(billed) != claimed:
            raise RuntimeError(
                f"Claimed {claimed} work entries but resolved {len(billed)} with rates"
            )

        # Step 4: Build line items
        lines: List[InvoiceLine] = []
        for entry, rate in billed:
            description = f"{rate.name} - {entry.description}" if entry.description else rate.name
            lines.append(
                InvoiceLine(
                    invoice_id=invoice_id,
                    work_entry_id=entry.id,
                    description=description,
                    quantity=entry.quantity,
                    unit_price_cents=rate.rate_cents,
                    total_cents=line_total_cents(entry.quantity, rate.rate_cents),
                )
            )

        subtotal = sum(line.total_cents for line in lines)
        tax = tax_cents(subtotal, command.tax_rate)

        # Step 5: Allocate invoice number
        now = datetime.utcnow()
        invoice_number = await self.invoice_repo.generate_invoice_number(now.year)

        # Step 6: Persist invoice and lines
        invoice = Invoice(
            id=invoice_id,
            customer_id=project.customer_id,
            project_id=project.id,
            invoice_number=invoice_number,
            status=InvoiceStatus.PENDING,
            issued_at=now,
            due_date=now + timedelta(days=command.due_days),
            subtotal_cents=subtotal,
            tax_rate=Decimal(command.tax_rate),
            tax_amount_cents=tax,
            total_amount_cents=subtotal + tax,
            currency=command.currency,
            notes=command.notes,
        )
        created = await self.invoice_repo.create(invoice)
        await self.invoice_line_repo.create_many(lines)

        await self.uow.commit()

        logger.info(
            f"Generated invoice {created.invoice_number} for project {project.id}: "
            f"{len(lines)} entries, total {created.total_amount_cents} cents"
        )

        # Step 7: Notify customer
        await notify_invoice_created(self.notification_service, created)

        return Return.ok(InvoiceDTO.from_entity(created, lines))


class GenerateInvoiceFromAgentCosts:
    """
    Use Case: Invoice a customer's unbilled agent costs

    Business Rules:
    1. Customer must exist
    2. No unbilled agent costs -> Ok(None)
    3. One line per entry: quantity 1, unit price = client charge
    4. No tax; same claim-first rule as work entries
    """

    def __init__(
        self,
        uow: UnitOfWork,
        customer_repo: CustomerRepository,
        agent_cost_repo: AgentCostRepository,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.customer_repo = customer_repo
        self.agent_cost_repo = agent_cost_repo
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.notification_service = notification_service

    async def execute(self, command: GenerateAgentCostInvoiceCommandDTO) -> Result[Optional[InvoiceDTO]]:
        try:
            return await retry_on_number_collision(
                self.uow, lambda: self._generate(command), f"customer {command.customer_id}"
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Agent cost invoice generation failed for customer {command.customer_id}: {e}")
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_FAILED",
                    message="Failed to generate invoice from agent costs",
                    reason=str(e),
                )
            )

    async def _generate(self, command: GenerateAgentCostInvoiceCommandDTO) -> Result[Optional[InvoiceDTO]]:
        customer = await self.customer_repo.get_by_id(command.customer_id)
        if not customer:
            return Return.err(
                Error(code="CUSTOMER_NOT_FOUND", message=f"Customer {command.customer_id} not found")
            )

        invoice_id = generate_uuid()
        claimed = await self.agent_cost_repo.claim_unbilled(
            customer.id, invoice_id, project_id=command.project_id
        )

        if claimed == 0:
            await self.uow.rollback()
            logger.info(f"No invoice generated: customer {customer.id} has no unbilled agent costs")
            return Return.ok(None)

        entries = await self.agent_cost_repo.get_by_invoice_id(invoice_id)

        lines = [
            InvoiceLine(
                invoice_id=invoice_id,
                agent_cost_entry_id=entry.id,
                description=f"AI Development - {entry.description}",
                quantity=Decimal("1"),
                unit_price_cents=entry.client_charge_cents,
                total_cents=entry.client_charge_cents,
            )
            for entry in entries
        ]
        subtotal = sum(line.total_cents for line in lines)

        now = datetime.utcnow()
        invoice = Invoice(
            id=invoice_id,
            customer_id=customer.id,
            project_id=command.project_id,
            invoice_number=await self.invoice_repo.generate_invoice_number(now.year),
            status=InvoiceStatus.PENDING,
            issued_at=now,
            due_date=now + timedelta(days=command.due_days),
            subtotal_cents=subtotal,
            tax_rate=Decimal("0"),
            tax_amount_cents=0,
            total_amount_cents=subtotal,
            currency=command.currency,
        )
        created = await self.invoice_repo.create(invoice)
        await self.invoice_line_repo.create_many(lines)

        await self.uow.commit()

        logger.info(
            f"Generated agent cost invoice {created.invoice_number} for customer {customer.id}: "
            f"{len(lines)} sessions, total {created.total_amount_cents} cents"
        )

        await notify_invoice_created(self.notification_service, created)

        return Return.ok(InvoiceDTO.from_entity(created, lines))
