import pytest
from unittest.mock import AsyncMock, MagicMock

from src.domain.payment_plan import PaymentPlanStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def guarded_plan_repo():
    """
    Build a plan repository mock whose guarded updates apply to one
    in-memory plan under the same conditions as the SQL WHERE clauses
    """

    def build(plan):
        repo = MagicMock()

        async def transition(plan_id, from_statuses, to_status, **values):
            if plan_id != plan.id or plan.status not in from_statuses:
                return False
            plan.status = to_status
            for name, value in values.items():
                setattr(plan, name, value)
            return True

        async def activate(plan_id, subscription_id, checkout_session_id, now):
            if plan_id != plan.id or plan.status not in (
                PaymentPlanStatus.PENDING,
                PaymentPlanStatus.AWAITING_CONFIRMATION,
            ):
                return False
            plan.status = PaymentPlanStatus.ACTIVE
            plan.stripe_subscription_id = subscription_id
            plan.start_date = plan.start_date or now
            plan.stripe_checkout_session_id = plan.stripe_checkout_session_id or checkout_session_id
            return True

        async def increment_installments(plan_id):
            if (
                plan_id != plan.id
                or plan.status != PaymentPlanStatus.ACTIVE
                or plan.installments_paid >= plan.number_of_installments
            ):
                return False
            plan.installments_paid += 1
            return True

        async def complete_if_fully_paid(plan_id, now):
            if (
                plan_id != plan.id
                or plan.status != PaymentPlanStatus.ACTIVE
                or plan.installments_paid < plan.number_of_installments
            ):
                return False
            plan.status = PaymentPlanStatus.COMPLETED
            plan.completed_at = plan.completed_at or now
            return True

        repo.transition = AsyncMock(side_effect=transition)
        repo.activate = AsyncMock(side_effect=activate)
        repo.increment_installments = AsyncMock(side_effect=increment_installments)
        repo.complete_if_fully_paid = AsyncMock(side_effect=complete_if_fully_paid)
        repo.refresh = AsyncMock(side_effect=lambda p: p)
        return repo

    return build
