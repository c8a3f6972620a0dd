"""Rate Catalog Use Cases

Create, list and update billing rates.
"""

from typing import List
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.billing_rate_repository import BillingRateRepository
from src.domain.billing_rate import BillingRate
from .dtos import BillingRateDTO, CreateBillingRateCommandDTO, UpdateBillingRateCommandDTO


class CreateBillingRate:
    """
    Use Case: Add a rate to the catalog

    Business Rules:
    1. Rate code is unique
    """

    def __init__(self, uow: UnitOfWork, rate_repo: BillingRateRepository):
        self.uow = uow
        self.rate_repo = rate_repo

    async def execute(self, command: CreateBillingRateCommandDTO) -> Result[BillingRateDTO]:
        try:
            existing = await self.rate_repo.get_by_code(command.code)
            if existing:
                return Return.err(
                    Error(
                        code="BILLING_RATE_CODE_EXISTS",
                        message=f"Billing rate with code {command.code} already exists",
                    )
                )

            rate = BillingRate(
                code=command.code,
                name=command.name,
                unit_label=command.unit_label,
                rate_cents=command.rate_cents,
                description=command.description,
                is_active=command.is_active,
            )
            created = await self.rate_repo.create(rate)
            await self.uow.commit()

            return Return.ok(BillingRateDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="CREATE_BILLING_RATE_FAILED", message="Failed to create billing rate", reason=str(e))
            )


class ListBillingRates:
    def __init__(self, rate_repo: BillingRateRepository):
        self.rate_repo = rate_repo

    async def execute(self, active_only: bool = False) -> Result[List[BillingRateDTO]]:
        try:
            rates = await self.rate_repo.list(active_only=active_only)
            return Return.ok([BillingRateDTO.from_entity(rate) for rate in rates])
        except Exception as e:
            return Return.err(
                Error(code="LIST_BILLING_RATES_FAILED", message="Failed to list billing rates", reason=str(e))
            )


class UpdateBillingRate:
    """
    Use Case: Edit a catalog rate

    Business Rules:
    1. Name, unit label, description and active flag can always change
    2. rate_cents is frozen once any work entry references the rate
    """

    def __init__(self, uow: UnitOfWork, rate_repo: BillingRateRepository):
        self.uow = uow
        self.rate_repo = rate_repo

    async def execute(self, command: UpdateBillingRateCommandDTO) -> Result[BillingRateDTO]:
        try:
            rate = await self.rate_repo.get_by_id(command.rate_id)
            if not rate:
                return Return.err(
                    Error(code="BILLING_RATE_NOT_FOUND", message=f"Billing rate {command.rate_id} not found")
                )

            if command.rate_cents is not None and command.rate_cents != rate.rate_cents:
                if await self.rate_repo.is_referenced(rate.id):
                    return Return.err(
                        Error(
                            code="BILLING_RATE_IN_USE",
                            message=f"Billing rate {rate.code} is referenced by work entries; "
                                    f"create a new rate instead of changing its price",
                        )
                    )
                rate.rate_cents = command.rate_cents

            if command.name is not None:
                rate.name = command.name
            if command.unit_label is not None:
                rate.unit_label = command.unit_label
            if command.description is not None:
                rate.description = command.description
            if command.is_active is not None:
                rate.is_active = command.is_active

            updated = await self.rate_repo.update(rate)
            await self.uow.commit()

            return Return.ok(BillingRateDTO.from_entity(updated))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="UPDATE_BILLING_RATE_FAILED", message="Failed to update billing rate", reason=str(e))
            )
