"""Unit tests for PaymentPlan domain helpers"""

import pytest

from src.domain.payment_plan import (
    LIVE_PLAN_STATUSES,
    PaymentPlan,
    PaymentPlanStatus,
    PlanFrequency,
)
from src.domain.work_entry import BillingState, WorkEntry
from decimal import Decimal


class TestPlanFrequency:
    @pytest.mark.parametrize(
        "frequency,interval,interval_count,days",
        [
            (PlanFrequency.WEEKLY, "week", 1, 7),
            (PlanFrequency.BIWEEKLY, "week", 2, 14),
            (PlanFrequency.MONTHLY, "month", 1, 30),
        ],
    )
    def test_provider_interval_mapping(self, frequency, interval, interval_count, days):
        assert frequency.interval == interval
        assert frequency.interval_count == interval_count
        assert frequency.days == days


class TestPaymentPlanState:
    def _plan(self, **overrides):
        values = dict(
            invoice_id="inv-1",
            customer_id="cust-1",
            total_amount_cents=10000,
            installment_amount_cents=3334,
            number_of_installments=3,
        )
        values.update(overrides)
        return PaymentPlan(**values)

    def test_new_plan_is_pending_and_live(self):
        plan = self._plan()
        assert plan.status == PaymentPlanStatus.PENDING
        assert plan.installments_paid == 0
        assert plan.is_live

    def test_failed_plan_is_not_live(self):
        assert PaymentPlanStatus.FAILED not in LIVE_PLAN_STATUSES
        assert not self._plan(status=PaymentPlanStatus.FAILED).is_live

    def test_fully_paid(self):
        assert not self._plan(installments_paid=2).is_fully_paid
        assert self._plan(installments_paid=3).is_fully_paid


class TestWorkEntryBillingState:
    def test_billing_state_follows_invoice_id(self):
        entry = WorkEntry(project_id="p", customer_id="c", rate_id="r", quantity=Decimal("1"))
        assert entry.billing_state == BillingState.UNBILLED
        assert not entry.is_billed

        entry.invoice_id = "inv-1"
        assert entry.billing_state == BillingState.BILLED
        assert entry.is_billed
