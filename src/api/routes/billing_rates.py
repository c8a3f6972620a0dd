"""Rate Catalog API Routes"""

from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import UpdateBillingRateRequestSchema
from src.app.use_cases.billing.dtos import (
    BillingRateDTO,
    CreateBillingRateCommandDTO,
    UpdateBillingRateCommandDTO,
)
from src.app.use_cases.billing.manage_billing_rates import (
    CreateBillingRate,
    ListBillingRates,
    UpdateBillingRate,
)
from src.adapter.repositories.billing_rate_repository import SqlAlchemyBillingRateRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/billing/rates", tags=["Rates"])


@router.post(
    "",
    response_model=BillingRateDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Rate code already exists",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "BILLING_RATE_CODE_EXISTS",
                            "message": "Billing rate with code DEV_HOUR already exists"
                        }
                    }
                }
            }
        }
    }
)
async def create_billing_rate(
    request: CreateBillingRateCommandDTO,
    session: AsyncSession = Depends(get_session)
):
    """
    Add a rate to the catalog.

    Rates are priced in cents per unit. The code must be unique.
    """
    uow = SqlAlchemyUnitOfWork(session)
    rate_repo = SqlAlchemyBillingRateRepository(session)

    result = await CreateBillingRate(uow, rate_repo).execute(request)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=List[BillingRateDTO])
async def list_billing_rates(
    active_only: bool = Query(default=False, description="Only rates usable for new work"),
    session: AsyncSession = Depends(get_session)
):
    rate_repo = SqlAlchemyBillingRateRepository(session)

    result = await ListBillingRates(rate_repo).execute(active_only=active_only)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.patch("/{rate_id}", response_model=BillingRateDTO)
async def update_billing_rate(
    rate_id: str,
    request: UpdateBillingRateRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Update a rate.

    Changing `rate_cents` is rejected with BILLING_RATE_IN_USE once any work
    entry references the rate; deactivate it and create a new one instead.
    """
    uow = SqlAlchemyUnitOfWork(session)
    rate_repo = SqlAlchemyBillingRateRepository(session)

    command = UpdateBillingRateCommandDTO(rate_id=rate_id, **request.model_dump(exclude_unset=True))
    result = await UpdateBillingRate(uow, rate_repo).execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
