"""Work Ledger API Routes"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import RecordWorkEntryRequestSchema
from src.app.use_cases.billing.dtos import RecordWorkEntryCommandDTO, WorkEntryDTO
from src.app.use_cases.billing.manage_work_entries import (
    DeleteWorkEntry,
    ListWorkEntries,
    RecordWorkEntry,
)
from src.adapter.repositories.billing_rate_repository import SqlAlchemyBillingRateRepository
from src.adapter.repositories.project_repository import SqlAlchemyProjectRepository
from src.adapter.repositories.work_entry_repository import SqlAlchemyWorkEntryRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/billing/work-entries", tags=["Work Ledger"])


@router.post("", response_model=WorkEntryDTO, status_code=status.HTTP_201_CREATED)
async def record_work_entry(
    request: RecordWorkEntryRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Record billable work against a project.

    **Returns:**
    - 201: Entry recorded (unbilled)
    - 400: Rate is inactive
    - 404: Project or rate not found
    """
    uow = SqlAlchemyUnitOfWork(session)
    work_entry_repo = SqlAlchemyWorkEntryRepository(session)
    project_repo = SqlAlchemyProjectRepository(session)
    rate_repo = SqlAlchemyBillingRateRepository(session)

    command = RecordWorkEntryCommandDTO(**request.model_dump())
    result = await RecordWorkEntry(uow, work_entry_repo, project_repo, rate_repo).execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=List[WorkEntryDTO])
async def list_work_entries(
    project_id: Optional[str] = Query(default=None),
    customer_id: Optional[str] = Query(default=None),
    unbilled_only: bool = Query(default=False),
    session: AsyncSession = Depends(get_session)
):
    work_entry_repo = SqlAlchemyWorkEntryRepository(session)

    result = await ListWorkEntries(work_entry_repo).execute(
        project_id=project_id,
        customer_id=customer_id,
        unbilled_only=unbilled_only,
    )

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_work_entry(
    entry_id: str,
    session: AsyncSession = Depends(get_session)
):
    """Delete a work entry. Billed entries cannot be deleted."""
    uow = SqlAlchemyUnitOfWork(session)
    work_entry_repo = SqlAlchemyWorkEntryRepository(session)

    result = await DeleteWorkEntry(uow, work_entry_repo).execute(entry_id)

    if result.is_err():
        raise ClientError(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
