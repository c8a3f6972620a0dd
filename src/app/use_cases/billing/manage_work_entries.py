"""Work Ledger Use Cases

Record, list and delete billable work entries.
"""

from datetime import datetime
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.billing_rate_repository import BillingRateRepository
from src.app.repositories.project_repository import ProjectRepository
from src.app.repositories.work_entry_repository import WorkEntryRepository
from src.domain.work_entry import WorkEntry
from .dtos import RecordWorkEntryCommandDTO, WorkEntryDTO


class RecordWorkEntry:
    """
    Use Case: Append billable work to the ledger

    Business Rules:
    1. Project must exist; the entry is billed to the project's customer
    2. Rate must exist and be active
    3. Entries are created unbilled

    Flow:
    1. Resolve project
    2. Resolve and check rate
    3. Create entry
    4. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        work_entry_repo: WorkEntryRepository,
        project_repo: ProjectRepository,
        rate_repo: BillingRateRepository,
    ):
        self.uow = uow
        self.work_entry_repo = work_entry_repo
        self.project_repo = project_repo
        self.rate_repo = rate_repo

    async def execute(self, command: RecordWorkEntryCommandDTO) -> Result[WorkEntryDTO]:
        try:
            # Step 1: Resolve project
            project = await self.project_repo.get_by_id(command.project_id)
            if not project:
                return Return.err(
                    Error(code="PROJECT_NOT_FOUND", message=f"Project {command.project_id} not found")
                )

            # Step 2: Resolve rate
            rate = await self.rate_repo.get_by_id(command.rate_id)
            if not rate:
                return Return.err(
                    Error(code="BILLING_RATE_NOT_FOUND", message=f"Billing rate {command.rate_id} not found")
                )
            if not rate.is_active:
                return Return.err(
                    Error(
                        code="BILLING_RATE_INACTIVE",
                        message=f"Billing rate {rate.code} is inactive",
                        reason="Inactive rates cannot be used for new work",
                    )
                )

            # Step 3: Create entry
            entry = WorkEntry(
                project_id=project.id,
                customer_id=project.customer_id,
                rate_id=rate.id,
                quantity=command.quantity,
                description=command.description,
                recorded_at=command.recorded_at or datetime.utcnow(),
            )
            created = await self.work_entry_repo.create(entry)

            # Step 4: Commit transaction
            await self.uow.commit()

            return Return.ok(WorkEntryDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="RECORD_WORK_ENTRY_FAILED", message="Failed to record work entry", reason=str(e))
            )


class ListWorkEntries:
    def __init__(self, work_entry_repo: WorkEntryRepository):
        self.work_entry_repo = work_entry_repo

    async def execute(
        self,
        project_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        unbilled_only: bool = False,
    ) -> Result[List[WorkEntryDTO]]:
        try:
            entries = await self.work_entry_repo.list(
                project_id=project_id,
                customer_id=customer_id,
                unbilled_only=unbilled_only,
            )
            return Return.ok([WorkEntryDTO.from_entity(entry) for entry in entries])
        except Exception as e:
            return Return.err(
                Error(code="LIST_WORK_ENTRIES_FAILED", message="Failed to list work entries", reason=str(e))
            )


class DeleteWorkEntry:
    """
    Use Case: Remove a work entry that has not been billed

    The delete itself is conditional on invoice_id IS NULL, so an entry
    claimed by a concurrent invoice generation is never removed.
    """

    def __init__(self, uow: UnitOfWork, work_entry_repo: WorkEntryRepository):
        self.uow = uow
        self.work_entry_repo = work_entry_repo

    async def execute(self, entry_id: str) -> Result[None]:
        try:
            entry = await self.work_entry_repo.get_by_id(entry_id)
            if not entry:
                return Return.err(
                    Error(code="WORK_ENTRY_NOT_FOUND", message=f"Work entry {entry_id} not found")
                )

            if entry.is_billed or not await self.work_entry_repo.delete(entry_id):
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="WORK_ENTRY_ALREADY_BILLED",
                        message=f"Work entry {entry_id} has already been billed",
                    )
                )

            await self.uow.commit()
            return Return.ok(None)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="DELETE_WORK_ENTRY_FAILED", message="Failed to delete work entry", reason=str(e))
            )
