"""Integration tests for the payment plan lifecycle against SQLite

Drives a plan through create -> accept -> checkout webhook -> installment
webhooks using the in-memory payment provider, and checks that redelivered
webhooks never double count. Concurrent tests run use cases on separate
sessions with asyncio.gather so that they race on the SQLite writer lock.
"""

import asyncio
import json
import pytest
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from src.adapter.repositories import (
    SqlAlchemyCustomerRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentPlanRepository,
    SqlAlchemyWebhookEventRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing import (
    AcceptPaymentPlan,
    CancelPaymentPlan,
    CreatePaymentPlan,
    ReconcileWebhookEvent,
)
from src.app.use_cases.billing.dtos import (
    AcceptPaymentPlanCommandDTO,
    CreatePaymentPlanCommandDTO,
    WebhookEventCommandDTO,
)
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.payment_plan import PaymentPlan, PaymentPlanStatus, PlanFrequency


def payload(event_id, event_type, data_object):
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": data_object}}).encode()


async def issue_invoice(session, total_cents=10000):
    invoice = Invoice(
        customer_id="cust-1",
        project_id="proj-1",
        invoice_number="INV-2024-0100",
        status=InvoiceStatus.PENDING,
        issued_at=datetime.utcnow(),
        due_date=datetime.utcnow() + timedelta(days=30),
        subtotal_cents=total_cents,
        total_amount_cents=total_cents,
    )
    session.add(invoice)
    await session.commit()
    return invoice


async def create_plan(session, invoice_id, installments=3):
    return await CreatePaymentPlan(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentPlanRepository(session),
    ).execute(CreatePaymentPlanCommandDTO(invoice_id=invoice_id, number_of_installments=installments))


async def accept_plan(session, provider, plan_id):
    return await AcceptPaymentPlan(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPaymentPlanRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyCustomerRepository(session),
        provider,
    ).execute(AcceptPaymentPlanCommandDTO(plan_id=plan_id, customer_id="cust-1"))


async def deliver(session_factory, provider, body):
    async with session_factory() as session:
        return await ReconcileWebhookEvent(
            SqlAlchemyUnitOfWork(session),
            SqlAlchemyPaymentPlanRepository(session),
            SqlAlchemyInvoiceRepository(session),
            SqlAlchemyWebhookEventRepository(session),
            provider,
        ).execute(WebhookEventCommandDTO(payload=body))


async def create_plan_in_new_session(session_factory, invoice_id, installments=3):
    async with session_factory() as session:
        return await create_plan(session, invoice_id, installments)


async def activate_plan(session_factory, provider, plan_id, subscription):
    result = await deliver(
        session_factory,
        provider,
        payload(
            f"evt_checkout_{plan_id}",
            "checkout.session.completed",
            {
                "id": "cs_x",
                "mode": "subscription",
                "subscription": subscription,
                "metadata": {"paymentPlanId": plan_id},
            },
        ),
    )
    assert result.value.outcome == "applied"


def installment_paid(event_id, subscription):
    return payload(
        event_id,
        "invoice.paid",
        {"id": f"in_{event_id}", "subscription": subscription, "billing_reason": "subscription_cycle"},
    )


class StaleLiveCheckRepository(SqlAlchemyPaymentPlanRepository):
    """Live-plan lookup that misses a plan committed after the read"""

    async def get_live_for_invoice(self, invoice_id):
        return None


async def load_plan(session_factory, plan_id):
    async with session_factory() as session:
        return await SqlAlchemyPaymentPlanRepository(session).get_by_id(plan_id)


async def load_invoice(session_factory, invoice_id):
    async with session_factory() as session:
        return await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)


@pytest.mark.asyncio
class TestPaymentPlanFlowIntegration:
    async def test_full_plan_lifecycle_pays_invoice(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)

        created = await create_plan(db_session, invoice.id)
        assert created.is_ok()
        plan_id = created.value.id
        assert created.value.installment_amount_cents == 3334

        accepted = await accept_plan(db_session, payment_provider, plan_id)
        assert accepted.is_ok()
        assert accepted.value.status == "awaiting_confirmation"
        assert accepted.value.checkout_url.startswith("https://checkout.stripe.test/")

        checkout = await deliver(
            session_factory,
            payment_provider,
            payload(
                "evt_checkout",
                "checkout.session.completed",
                {
                    "id": accepted.value.checkout_session_id,
                    "mode": "subscription",
                    "subscription": "sub_1",
                    "metadata": {"paymentPlanId": plan_id},
                },
            ),
        )
        assert checkout.value.outcome == "applied"
        plan = await load_plan(session_factory, plan_id)
        assert plan.status == PaymentPlanStatus.ACTIVE
        assert plan.stripe_subscription_id == "sub_1"
        assert plan.start_date is not None

        for n in range(1, 4):
            result = await deliver(
                session_factory,
                payment_provider,
                payload(
                    f"evt_paid_{n}",
                    "invoice.paid",
                    {"id": f"in_{n}", "subscription": "sub_1", "billing_reason": "subscription_cycle"},
                ),
            )
            assert result.value.outcome == "applied"

        plan = await load_plan(session_factory, plan_id)
        assert plan.installments_paid == 3
        assert plan.status == PaymentPlanStatus.COMPLETED
        assert plan.completed_at is not None

        paid_invoice = await load_invoice(session_factory, invoice.id)
        assert paid_invoice.status == InvoiceStatus.PAID
        assert paid_invoice.paid_at is not None

    async def test_redelivered_events_are_applied_once(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id)).value.id
        await accept_plan(db_session, payment_provider, plan_id)

        checkout_body = payload(
            "evt_checkout",
            "checkout.session.completed",
            {"id": "cs_x", "mode": "subscription", "subscription": "sub_9", "metadata": {"paymentPlanId": plan_id}},
        )
        paid_body = payload(
            "evt_paid_1", "invoice.paid", {"id": "in_1", "subscription": "sub_9", "billing_reason": "subscription_cycle"}
        )

        assert (await deliver(session_factory, payment_provider, checkout_body)).value.outcome == "applied"
        assert (await deliver(session_factory, payment_provider, checkout_body)).value.outcome == "duplicate"
        assert (await deliver(session_factory, payment_provider, paid_body)).value.outcome == "applied"
        assert (await deliver(session_factory, payment_provider, paid_body)).value.outcome == "duplicate"

        plan = await load_plan(session_factory, plan_id)
        assert plan.status == PaymentPlanStatus.ACTIVE
        assert plan.installments_paid == 1

    async def test_second_live_plan_rejected_until_cancelled(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)
        first = await create_plan(db_session, invoice.id)

        blocked = await create_plan(db_session, invoice.id, installments=4)
        assert blocked.is_err()
        assert blocked.error.code == "PAYMENT_PLAN_EXISTS"

        cancelled = await CancelPaymentPlan(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyPaymentPlanRepository(db_session), payment_provider
        ).execute(first.value.id)
        assert cancelled.value.status == "cancelled"
        assert payment_provider.calls == []

        retry = await create_plan(db_session, invoice.id, installments=4)
        assert retry.is_ok()
        assert retry.value.installment_amount_cents == 2500

    async def test_cancel_active_plan_cancels_subscription(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id)).value.id
        await accept_plan(db_session, payment_provider, plan_id)
        await deliver(
            session_factory,
            payment_provider,
            payload(
                "evt_checkout",
                "checkout.session.completed",
                {"id": "cs_x", "mode": "subscription", "subscription": "sub_5", "metadata": {"paymentPlanId": plan_id}},
            ),
        )

        async with session_factory() as session:
            result = await CancelPaymentPlan(
                SqlAlchemyUnitOfWork(session), SqlAlchemyPaymentPlanRepository(session), payment_provider
            ).execute(plan_id)

        assert result.value.status == "cancelled"
        assert ("cancel_subscription", "sub_5") in payment_provider.calls

        # The provider's own deletion event then finds a non-active plan
        late = await deliver(
            session_factory,
            payment_provider,
            payload(
                "evt_deleted",
                "customer.subscription.deleted",
                {"id": "sub_5", "metadata": {"paymentPlanId": plan_id}},
            ),
        )
        assert late.value.outcome == "ignored"
        assert (await load_plan(session_factory, plan_id)).status == PaymentPlanStatus.CANCELLED


@pytest.mark.asyncio
class TestPaymentPlanConcurrency:
    async def test_concurrent_creates_leave_one_live_plan(self, db_session, session_factory, seed):
        invoice = await issue_invoice(db_session)

        results = await asyncio.gather(
            create_plan_in_new_session(session_factory, invoice.id),
            create_plan_in_new_session(session_factory, invoice.id, installments=4),
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert [r.error.code for r in results if r.is_err()] == ["PAYMENT_PLAN_EXISTS"]

        async with session_factory() as session:
            plans = (await session.execute(select(PaymentPlan))).scalars().all()
        assert len(plans) == 1
        assert plans[0].status == PaymentPlanStatus.PENDING

    async def test_create_past_stale_live_check_rejected(self, db_session, seed):
        invoice = await issue_invoice(db_session)
        assert (await create_plan(db_session, invoice.id)).is_ok()

        result = await CreatePaymentPlan(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemyInvoiceRepository(db_session),
            StaleLiveCheckRepository(db_session),
        ).execute(CreatePaymentPlanCommandDTO(invoice_id=invoice.id, number_of_installments=6))

        assert result.is_err()
        assert result.error.code == "PAYMENT_PLAN_EXISTS"
        assert result.error.reason == "Created concurrently"

    async def test_unique_index_only_covers_live_plans(self, db_session, seed):
        invoice = await issue_invoice(db_session)

        def plan(status):
            return PaymentPlan(
                invoice_id=invoice.id,
                customer_id="cust-1",
                total_amount_cents=10000,
                installment_amount_cents=5000,
                number_of_installments=2,
                frequency=PlanFrequency.MONTHLY,
                status=status,
            )

        db_session.add_all([
            plan(PaymentPlanStatus.CANCELLED),
            plan(PaymentPlanStatus.FAILED),
            plan(PaymentPlanStatus.ACTIVE),
        ])
        await db_session.commit()

        db_session.add(plan(PaymentPlanStatus.AWAITING_CONFIRMATION))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_concurrent_installments_all_counted(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id)).value.id
        await activate_plan(session_factory, payment_provider, plan_id, "sub_c")

        results = await asyncio.gather(
            *(deliver(session_factory, payment_provider, installment_paid(f"evt_{n}", "sub_c")) for n in range(3))
        )

        assert [r.value.outcome for r in results] == ["applied"] * 3
        plan = await load_plan(session_factory, plan_id)
        assert plan.installments_paid == 3
        assert plan.status == PaymentPlanStatus.COMPLETED
        assert (await load_invoice(session_factory, invoice.id)).status == InvoiceStatus.PAID

    async def test_concurrent_installments_never_exceed_count(
        self, db_session, session_factory, seed, payment_provider
    ):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id, installments=2)).value.id
        await activate_plan(session_factory, payment_provider, plan_id, "sub_d")

        results = await asyncio.gather(
            *(deliver(session_factory, payment_provider, installment_paid(f"evt_{n}", "sub_d")) for n in range(4))
        )

        assert sorted(r.value.outcome for r in results) == ["applied", "applied", "ignored", "ignored"]
        plan = await load_plan(session_factory, plan_id)
        assert plan.installments_paid == 2
        assert plan.status == PaymentPlanStatus.COMPLETED

    async def test_concurrent_redelivery_counted_once(self, db_session, session_factory, seed, payment_provider):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id)).value.id
        await activate_plan(session_factory, payment_provider, plan_id, "sub_e")
        body = installment_paid("evt_same", "sub_e")

        results = await asyncio.gather(
            deliver(session_factory, payment_provider, body),
            deliver(session_factory, payment_provider, body),
        )

        assert sorted(r.value.outcome for r in results) == ["applied", "duplicate"]
        assert (await load_plan(session_factory, plan_id)).installments_paid == 1

    async def test_cancel_racing_last_installment_stays_consistent(
        self, db_session, session_factory, seed, payment_provider
    ):
        invoice = await issue_invoice(db_session)
        plan_id = (await create_plan(db_session, invoice.id, installments=2)).value.id
        await activate_plan(session_factory, payment_provider, plan_id, "sub_f")
        await deliver(session_factory, payment_provider, installment_paid("evt_first", "sub_f"))

        async def cancel():
            async with session_factory() as session:
                return await CancelPaymentPlan(
                    SqlAlchemyUnitOfWork(session), SqlAlchemyPaymentPlanRepository(session), payment_provider
                ).execute(plan_id)

        cancelled, paid = await asyncio.gather(
            cancel(), deliver(session_factory, payment_provider, installment_paid("evt_last", "sub_f"))
        )

        plan = await load_plan(session_factory, plan_id)
        invoice_status = (await load_invoice(session_factory, invoice.id)).status
        assert cancelled.value.status == plan.status.value
        if plan.status == PaymentPlanStatus.COMPLETED:
            assert plan.installments_paid == 2
            assert plan.cancelled_at is None
            assert paid.value.outcome == "applied"
            assert invoice_status == InvoiceStatus.PAID
        else:
            assert plan.status == PaymentPlanStatus.CANCELLED
            assert plan.installments_paid == 1
            assert paid.value.outcome == "ignored"
            assert invoice_status == InvoiceStatus.PENDING
