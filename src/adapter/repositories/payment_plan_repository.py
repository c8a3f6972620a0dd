"""SQLAlchemy Payment Plan Repository Implementation

Every status change is one conditional UPDATE whose WHERE clause carries
the allowed source states. Concurrent writers serialize on the row lock
(or the SQLite writer lock) and the loser matches nothing.
"""

from typing import Optional, List, Sequence
from datetime import datetime
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_plan_repository import PaymentPlanRepository
from src.domain.payment_plan import PaymentPlan, PaymentPlanStatus, LIVE_PLAN_STATUSES


class SqlAlchemyPaymentPlanRepository(PaymentPlanRepository):
    """
    SQLAlchemy implementation of PaymentPlanRepository

    Features:
    - Guarded status transitions via conditional UPDATE
    - Lookup by provider subscription id for webhook reconciliation
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, plan: PaymentPlan) -> PaymentPlan:
        self.session.add(plan)
        await self.session.flush()
        await self.session.refresh(plan)
        return plan

    async def get_by_id(self, plan_id: str, for_update: bool = False) -> Optional[PaymentPlan]:
        statement = select(PaymentPlan).where(PaymentPlan.id == plan_id)

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_subscription_id(
        self, subscription_id: str, for_update: bool = False
    ) -> Optional[PaymentPlan]:
        statement = select(PaymentPlan).where(PaymentPlan.stripe_subscription_id == subscription_id)

        if for_update:
            statement = statement.with_for_update()

        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_live_for_invoice(self, invoice_id: str) -> Optional[PaymentPlan]:
        statement = (
            select(PaymentPlan)
            .where(PaymentPlan.invoice_id == invoice_id)
            .where(PaymentPlan.status.in_(LIVE_PLAN_STATUSES))
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def list(
        self,
        invoice_id: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> List[PaymentPlan]:
        statement = select(PaymentPlan)

        if invoice_id:
            statement = statement.where(PaymentPlan.invoice_id == invoice_id)
        if customer_id:
            statement = statement.where(PaymentPlan.customer_id == customer_id)

        statement = statement.order_by(PaymentPlan.created_at.desc())
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _apply(self, statement) -> bool:
        result = await self.session.execute(
            statement.execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def transition(
        self,
        plan_id: str,
        from_statuses: Sequence[PaymentPlanStatus],
        to_status: PaymentPlanStatus,
        **values,
    ) -> bool:
        statement = (
            update(PaymentPlan)
            .where(PaymentPlan.id == plan_id)
            .where(PaymentPlan.status.in_(tuple(from_statuses)))
            .values(status=to_status, updated_at=datetime.utcnow(), **values)
        )
        return await self._apply(statement)

    async def activate(
        self,
        plan_id: str,
        subscription_id: Optional[str],
        checkout_session_id: Optional[str],
        now: datetime,
    ) -> bool:
        statement = (
            update(PaymentPlan)
            .where(PaymentPlan.id == plan_id)
            .where(PaymentPlan.status.in_((
                PaymentPlanStatus.PENDING,
                PaymentPlanStatus.AWAITING_CONFIRMATION,
            )))
            .values(
                status=PaymentPlanStatus.ACTIVE,
                stripe_subscription_id=subscription_id,
                start_date=func.coalesce(PaymentPlan.start_date, now),
                stripe_checkout_session_id=func.coalesce(
                    PaymentPlan.stripe_checkout_session_id, checkout_session_id
                ),
                updated_at=now,
            )
        )
        return await self._apply(statement)

    async def increment_installments(self, plan_id: str) -> bool:
        statement = (
            update(PaymentPlan)
            .where(PaymentPlan.id == plan_id)
            .where(PaymentPlan.status == PaymentPlanStatus.ACTIVE)
            .where(PaymentPlan.installments_paid < PaymentPlan.number_of_installments)
            .values(
                installments_paid=PaymentPlan.installments_paid + 1,
                updated_at=datetime.utcnow(),
            )
        )
        return await self._apply(statement)

    async def complete_if_fully_paid(self, plan_id: str, now: datetime) -> bool:
        statement = (
            update(PaymentPlan)
            .where(PaymentPlan.id == plan_id)
            .where(PaymentPlan.status == PaymentPlanStatus.ACTIVE)
            .where(PaymentPlan.installments_paid >= PaymentPlan.number_of_installments)
            .values(
                status=PaymentPlanStatus.COMPLETED,
                completed_at=func.coalesce(PaymentPlan.completed_at, now),
                updated_at=now,
            )
        )
        return await self._apply(statement)

    async def refresh(self, plan: PaymentPlan) -> PaymentPlan:
        await self.session.refresh(plan)
        return plan
