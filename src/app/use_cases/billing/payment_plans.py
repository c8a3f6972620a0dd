"""Payment Plan Use Cases

A plan pays off one invoice through a recurring provider charge.

State model:
    pending -> awaiting_confirmation -> active -> {completed, cancelled}
    pending | awaiting_confirmation -> cancelled
    pending -> failed (provider error while accepting)

Activation is never synchronous: accepting a plan only starts a checkout,
and the checkout-completed webhook moves the plan to active.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.services.payment_provider import PaymentProvider, PaymentProviderError
from src.app.repositories.customer_repository import CustomerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_plan_repository import PaymentPlanRepository
from src.domain.invoice import InvoiceStatus
from src.domain.payment_plan import PaymentPlan, PaymentPlanStatus, TERMINAL_PLAN_STATUSES
from .dtos import (
    AcceptPaymentPlanCommandDTO,
    AcceptPaymentPlanResponseDTO,
    CreatePaymentPlanCommandDTO,
    PaymentPlanDTO,
)

logger = logging.getLogger(__name__)

MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 24


class CreatePaymentPlan:
    """
    Use Case: Offer a payment plan on an invoice

    Business Rules:
    1. Installments must be an integer in [2, 24]
    2. Invoice must exist and not be paid
    3. At most one live plan (pending, awaiting_confirmation, active) per invoice;
       a concurrent create that slips past the check hits the live-plan
       unique index and is reported as PAYMENT_PLAN_EXISTS
    4. installment_amount = ceil(total / installments); the remainder is
       not reconciled against the invoice total
    5. Plan starts pending with no provider subscription

    Flow:
    1. Validate installment count
    2. Lock invoice and check status
    3. Check for a live plan
    4. Create plan, commit
    5. Notify customer
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        plan_repo: PaymentPlanRepository,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.plan_repo = plan_repo
        self.notification_service = notification_service

    async def execute(self, command: CreatePaymentPlanCommandDTO) -> Result[PaymentPlanDTO]:
        try:
            # Step 1: Validate installment count
            installments = command.number_of_installments
            if not MIN_INSTALLMENTS <= installments <= MAX_INSTALLMENTS:
                return Return.err(
                    Error(
                        code="INVALID_INSTALLMENT_COUNT",
                        message=f"Number of installments must be between {MIN_INSTALLMENTS} "
                                f"and {MAX_INSTALLMENTS}, got {installments}",
                    )
                )

            # Step 2: Lock invoice
            invoice = await self.invoice_repo.get_by_id(command.invoice_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
                )

            if invoice.status == InvoiceStatus.PAID:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="INVOICE_ALREADY_PAID",
                        message=f"Invoice {invoice.invoice_number} is already paid",
                    )
                )

            if invoice.total_amount_cents <= 0:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="INVALID_INVOICE_AMOUNT",
                        message=f"Invoice {invoice.invoice_number} has nothing to pay",
                    )
                )

            # Step 3: One live plan per invoice
            live_plan = await self.plan_repo.get_live_for_invoice(invoice.id)
            if live_plan:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="PAYMENT_PLAN_EXISTS",
                        message=f"Invoice {invoice.invoice_number} already has a "
                                f"{live_plan.status.value} payment plan",
                        reason=f"Existing plan {live_plan.id}",
                    )
                )

            # Step 4: Create plan
            plan = PaymentPlan(
                invoice_id=invoice.id,
                customer_id=invoice.customer_id,
                total_amount_cents=invoice.total_amount_cents,
                installment_amount_cents=math.ceil(invoice.total_amount_cents / installments),
                number_of_installments=installments,
                frequency=command.frequency,
                status=PaymentPlanStatus.PENDING,
            )
            invoice_number = invoice.invoice_number
            try:
                created = await self.plan_repo.create(plan)
                await self.uow.commit()
            except IntegrityError:
                await self.uow.rollback()
                logger.warning(f"Concurrent payment plan create for invoice {invoice_number} rejected")
                return Return.err(
                    Error(
                        code="PAYMENT_PLAN_EXISTS",
                        message=f"Invoice {invoice_number} already has a live payment plan",
                        reason="Created concurrently",
                    )
                )

            logger.info(
                f"Created payment plan {created.id} for invoice {invoice.invoice_number}: "
                f"{installments} x {created.installment_amount_cents} cents ({created.frequency.value})"
            )

            # Step 5: Notify customer
            if self.notification_service is not None:
                try:
                    await self.notification_service.send_payment_plan_available(created, invoice)
                except Exception as e:
                    logger.warning(f"Payment plan notification failed for plan {created.id}: {e}")

            return Return.ok(PaymentPlanDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="CREATE_PAYMENT_PLAN_FAILED", message="Failed to create payment plan", reason=str(e))
            )


class AcceptPaymentPlan:
    """
    Use Case: Customer accepts a pending plan

    Business Rules:
    1. Plan must exist, belong to the caller (when given) and be pending
    2. Provider customer is created once and reused
    3. A recurring price at the installment amount and frequency is created
    4. The provider ends the subscription at now + frequency days x installments
    5. Plan moves to awaiting_confirmation; activation waits for the webhook
    6. A provider failure moves the plan to failed and is reported as
       PAYMENT_PROVIDER_ERROR; the plan is never marked active
    7. If the plan stopped being pending meanwhile (e.g. it was cancelled),
       the new checkout session is expired and PAYMENT_PLAN_NOT_PENDING returned

    Flow:
    1. Lock and validate plan
    2. Load customer and invoice
    3. Ensure provider customer
    4. Create price and checkout session
    5. Store provider ids, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        plan_repo: PaymentPlanRepository,
        invoice_repo: InvoiceRepository,
        customer_repo: CustomerRepository,
        payment_provider: PaymentProvider,
    ):
        self.uow = uow
        self.plan_repo = plan_repo
        self.invoice_repo = invoice_repo
        self.customer_repo = customer_repo
        self.payment_provider = payment_provider

    async def execute(self, command: AcceptPaymentPlanCommandDTO) -> Result[AcceptPaymentPlanResponseDTO]:
        try:
            # Step 1: Lock and validate plan
            plan = await self.plan_repo.get_by_id(command.plan_id, for_update=True)
            if not plan:
                return Return.err(
                    Error(code="PAYMENT_PLAN_NOT_FOUND", message=f"Payment plan {command.plan_id} not found")
                )

            if command.customer_id and plan.customer_id != command.customer_id:
                await self.uow.rollback()
                return Return.err(Error(code="ACCESS_DENIED", message="Access denied"))

            if plan.status != PaymentPlanStatus.PENDING:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="PAYMENT_PLAN_NOT_PENDING",
                        message=f"Payment plan is {plan.status.value} and not available for acceptance",
                    )
                )

            # Step 2: Load customer and invoice
            customer = await self.customer_repo.get_by_id(plan.customer_id)
            if not customer:
                await self.uow.rollback()
                return Return.err(
                    Error(code="CUSTOMER_NOT_FOUND", message=f"Customer {plan.customer_id} not found")
                )

            invoice = await self.invoice_repo.get_by_id(plan.invoice_id)
            if not invoice:
                await self.uow.rollback()
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {plan.invoice_id} not found")
                )
            if invoice.status == InvoiceStatus.PAID:
                await self.uow.rollback()
                return Return.err(
                    Error(code="INVOICE_ALREADY_PAID", message=f"Invoice {invoice.invoice_number} is already paid")
                )

            try:
                # Step 3: Ensure provider customer
                if not customer.stripe_customer_id:
                    customer.stripe_customer_id = await self.payment_provider.create_customer(
                        name=customer.name,
                        email=customer.email,
                        metadata={"customerId": customer.id},
                    )
                    await self.customer_repo.update(customer)

                # Step 4: Create price and checkout session
                price_id = await self.payment_provider.create_recurring_price(
                    amount_cents=plan.installment_amount_cents,
                    currency=invoice.currency,
                    interval=plan.frequency.interval,
                    interval_count=plan.frequency.interval_count,
                    product_name=f"Payment Plan - Invoice {invoice.invoice_number}",
                )
                cancel_at = datetime.utcnow() + timedelta(
                    days=plan.frequency.days * plan.number_of_installments
                )
                session = await self.payment_provider.create_checkout_session(
                    customer_id=customer.stripe_customer_id,
                    price_id=price_id,
                    cancel_at=cancel_at,
                    metadata={
                        "paymentPlanId": plan.id,
                        "invoiceId": plan.invoice_id,
                        "customerId": customer.id,
                    },
                )

            except PaymentProviderError as e:
                await self.plan_repo.transition(
                    plan.id,
                    (PaymentPlanStatus.PENDING,),
                    PaymentPlanStatus.FAILED,
                    failure_reason=e.message,
                )
                await self.uow.commit()

                logger.error(f"Payment plan {command.plan_id} failed at the payment provider: {e.message}")
                return Return.err(
                    Error(
                        code="PAYMENT_PROVIDER_ERROR",
                        message="Payment provider rejected the payment plan",
                        reason=e.message,
                    )
                )

            # Step 5: Store provider ids, only if the plan is still pending
            accepted = await self.plan_repo.transition(
                plan.id,
                (PaymentPlanStatus.PENDING,),
                PaymentPlanStatus.AWAITING_CONFIRMATION,
                stripe_price_id=price_id,
                stripe_checkout_session_id=session.id,
            )
            if not accepted:
                await self.uow.rollback()
                await self._expire_orphaned_checkout(command.plan_id, session.id)
                return Return.err(
                    Error(
                        code="PAYMENT_PLAN_NOT_PENDING",
                        message="Payment plan changed while it was being accepted",
                    )
                )

            updated = await self.plan_repo.refresh(plan)
            await self.uow.commit()

            logger.info(f"Payment plan {updated.id} accepted, awaiting checkout {session.id}")

            return Return.ok(
                AcceptPaymentPlanResponseDTO(
                    payment_plan_id=updated.id,
                    status=updated.status.value,
                    checkout_session_id=session.id,
                    checkout_url=session.url,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="ACCEPT_PAYMENT_PLAN_FAILED", message="Failed to start payment plan", reason=str(e))
            )

    async def _expire_orphaned_checkout(self, plan_id: str, checkout_session_id: str) -> None:
        try:
            await self.payment_provider.expire_checkout_session(checkout_session_id)
        except PaymentProviderError as e:
            logger.error(f"Could not expire checkout {checkout_session_id} of payment plan {plan_id}: {e.message}")
        else:
            logger.warning(
                f"Payment plan {plan_id} changed while being accepted; checkout {checkout_session_id} expired"
            )


class CancelPaymentPlan:
    """
    Use Case: Cancel a payment plan

    Business Rules:
    1. Unknown plan -> Ok(None), nothing to cancel
    2. Terminal plans are returned unchanged
    3. Active plans cancel the provider subscription first; awaiting
       plans expire their checkout session first
    4. A provider failure leaves the plan untouched and is reported as
       PAYMENT_PROVIDER_ERROR
    5. Local status moves straight to cancelled; a later
       subscription-deleted webhook finds a non-active plan and is a no-op
    6. If the plan moved on concurrently (e.g. its last installment
       completed it), the current plan is returned and nothing is overwritten
    """

    def __init__(
        self,
        uow: UnitOfWork,
        plan_repo: PaymentPlanRepository,
        payment_provider: PaymentProvider,
    ):
        self.uow = uow
        self.plan_repo = plan_repo
        self.payment_provider = payment_provider

    async def execute(self, plan_id: str) -> Result[Optional[PaymentPlanDTO]]:
        try:
            plan = await self.plan_repo.get_by_id(plan_id, for_update=True)
            if not plan:
                return Return.ok(None)

            if plan.status in TERMINAL_PLAN_STATUSES:
                await self.uow.rollback()
                return Return.ok(PaymentPlanDTO.from_entity(plan))

            previous = plan.status
            try:
                if plan.status == PaymentPlanStatus.ACTIVE and plan.stripe_subscription_id:
                    await self.payment_provider.cancel_subscription(plan.stripe_subscription_id)
                elif (
                    plan.status == PaymentPlanStatus.AWAITING_CONFIRMATION
                    and plan.stripe_checkout_session_id
                ):
                    await self.payment_provider.expire_checkout_session(plan.stripe_checkout_session_id)
            except PaymentProviderError as e:
                await self.uow.rollback()
                logger.error(f"Could not cancel payment plan {plan_id} at the payment provider: {e.message}")
                return Return.err(
                    Error(
                        code="PAYMENT_PROVIDER_ERROR",
                        message="Payment provider could not cancel the payment plan",
                        reason=e.message,
                    )
                )

            cancelled = await self.plan_repo.transition(
                plan.id, (previous,), PaymentPlanStatus.CANCELLED, cancelled_at=datetime.utcnow()
            )
            updated = await self.plan_repo.refresh(plan)
            if not cancelled:
                current = PaymentPlanDTO.from_entity(updated)
                await self.uow.rollback()
                logger.warning(f"Payment plan {plan_id} moved to {current.status} while being cancelled")
                return Return.ok(current)

            await self.uow.commit()

            logger.info(f"Payment plan {plan_id} cancelled (was {previous.value})")
            return Return.ok(PaymentPlanDTO.from_entity(updated))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="CANCEL_PAYMENT_PLAN_FAILED", message="Failed to cancel payment plan", reason=str(e))
            )


class ListPaymentPlans:
    def __init__(self, plan_repo: PaymentPlanRepository):
        self.plan_repo = plan_repo

    async def execute(
        self,
        invoice_id: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> Result[List[PaymentPlanDTO]]:
        try:
            plans = await self.plan_repo.list(invoice_id=invoice_id, customer_id=customer_id)
            return Return.ok([PaymentPlanDTO.from_entity(plan) for plan in plans])
        except Exception as e:
            return Return.err(
                Error(code="LIST_PAYMENT_PLANS_FAILED", message="Failed to list payment plans", reason=str(e))
            )


class GetPaymentPlan:
    def __init__(self, plan_repo: PaymentPlanRepository):
        self.plan_repo = plan_repo

    async def execute(self, plan_id: str) -> Result[PaymentPlanDTO]:
        try:
            plan = await self.plan_repo.get_by_id(plan_id)
            if not plan:
                return Return.err(
                    Error(code="PAYMENT_PLAN_NOT_FOUND", message=f"Payment plan {plan_id} not found")
                )
            return Return.ok(PaymentPlanDTO.from_entity(plan))
        except Exception as e:
            return Return.err(
                Error(code="GET_PAYMENT_PLAN_FAILED", message="Failed to retrieve payment plan", reason=str(e))
            )
