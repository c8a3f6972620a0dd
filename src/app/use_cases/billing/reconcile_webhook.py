"""ReconcileWebhookEvent Use Case

Applies payment provider webhook events to local payment plan and invoice
state. Deliveries are at-least-once and unordered, so every handler is
guarded by the plan status it expects and a redelivery is a no-op:

| Event                        | Guard                          | Effect                                   |
|------------------------------|--------------------------------|------------------------------------------|
| checkout.session.completed   | plan pending/awaiting          | active, subscription id, start date      |
| invoice.paid (not creation)  | plan active, found by sub id   | +1 installment; last one completes plan  |
|                              |                                | and marks the invoice paid               |
| customer.subscription.deleted| plan active                    | completed if fully paid, else cancelled  |

Each handler runs in its own transaction. Applied handlers are recorded in
ProcessedWebhookEvent together with their effects; a failing handler is
rolled back and logged while the others still run.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_provider import PaymentProvider, WebhookVerificationError
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_plan_repository import PaymentPlanRepository
from src.app.repositories.webhook_event_repository import WebhookEventRepository
from src.domain.invoice import InvoiceStatus
from src.domain.payment_plan import PaymentPlanStatus
from src.domain.webhook_event import ProcessedWebhookEvent
from .dtos import WebhookEventCommandDTO, WebhookHandlerOutcomeDTO, WebhookResultDTO

logger = logging.getLogger(__name__)

APPLIED = "applied"
IGNORED = "ignored"
DUPLICATE = "duplicate"
ERROR = "error"

HandlerOutcome = Tuple[str, Optional[str]]


class ReconcileWebhookEvent:
    """
    Use Case: Reconcile one webhook delivery

    Business Rules:
    1. With a webhook secret configured, the signature is verified first;
       failures are rejected (INVALID_SIGNATURE / INVALID_PAYLOAD)
    2. installments_paid never decreases and never exceeds the plan's count
    3. completed and cancelled plans never return to active
    4. The same (event id, handler) pair is applied at most once

    Flow:
    1. Verify and parse payload
    2. Select handlers for the event type
    3. For each handler: skip if already applied, else run, record, commit
    4. Aggregate outcomes
    """

    def __init__(
        self,
        uow: UnitOfWork,
        plan_repo: PaymentPlanRepository,
        invoice_repo: InvoiceRepository,
        webhook_event_repo: WebhookEventRepository,
        payment_provider: PaymentProvider,
    ):
        self.uow = uow
        self.plan_repo = plan_repo
        self.invoice_repo = invoice_repo
        self.webhook_event_repo = webhook_event_repo
        self.payment_provider = payment_provider

        self.handlers: Dict[str, List[Callable[[Dict[str, Any]], Awaitable[HandlerOutcome]]]] = {
            "checkout.session.completed": [self._activate_plan],
            "invoice.paid": [self._record_installment],
            "customer.subscription.deleted": [self._close_plan],
        }

    async def execute(self, command: WebhookEventCommandDTO) -> Result[WebhookResultDTO]:
        # Step 1: Verify and parse payload
        try:
            event = self.payment_provider.construct_event(command.payload, command.signature)
        except WebhookVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            return Return.err(
                Error(code="INVALID_SIGNATURE", message="Webhook signature verification failed", reason=str(e))
            )
        except ValueError as e:
            logger.warning(f"Invalid webhook payload: {e}")
            return Return.err(Error(code="INVALID_PAYLOAD", message="Invalid webhook payload", reason=str(e)))

        event_id = event.get("id")
        event_type = event.get("type", "")
        data = event.get("data") or {}
        data_object = data.get("object") if isinstance(data, dict) else None
        if not isinstance(data_object, dict):
            return Return.err(Error(code="INVALID_PAYLOAD", message="Webhook event has no data object"))

        # Step 2: Select handlers
        handlers = self.handlers.get(event_type, [])
        if not handlers:
            logger.debug(f"Unhandled webhook event type: {event_type}")
            return Return.ok(WebhookResultDTO(event_id=event_id, event_type=event_type, outcome=IGNORED))

        # Step 3: Run handlers independently
        outcomes = []
        for handler in handlers:
            outcomes.append(await self._run_handler(handler, event_id, event_type, data_object))

        # Step 4: Aggregate
        return Return.ok(
            WebhookResultDTO(
                event_id=event_id,
                event_type=event_type,
                outcome=self._aggregate(outcomes),
                handlers=outcomes,
            )
        )

    async def _run_handler(
        self,
        handler: Callable[[Dict[str, Any]], Awaitable[HandlerOutcome]],
        event_id: Optional[str],
        event_type: str,
        data_object: Dict[str, Any],
    ) -> WebhookHandlerOutcomeDTO:
        name = handler.__name__.lstrip("_")

        try:
            if event_id and await self.webhook_event_repo.exists(event_id, name):
                logger.warning(f"Duplicate webhook delivery {event_id} ({event_type}) for {name}")
                return WebhookHandlerOutcomeDTO(handler=name, outcome=DUPLICATE)

            outcome, plan_id = await handler(data_object)

            if outcome == APPLIED and event_id:
                await self.webhook_event_repo.create(
                    ProcessedWebhookEvent(
                        event_id=event_id,
                        handler=name,
                        event_type=event_type,
                        payment_plan_id=plan_id,
                    )
                )
                await self.uow.commit()
            elif outcome == APPLIED:
                await self.uow.commit()
            else:
                await self.uow.rollback()

            return WebhookHandlerOutcomeDTO(handler=name, outcome=outcome, payment_plan_id=plan_id)

        except IntegrityError:
            await self.uow.rollback()
            logger.warning(f"Webhook delivery {event_id} ({event_type}) was applied concurrently by {name}")
            return WebhookHandlerOutcomeDTO(handler=name, outcome=DUPLICATE)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Webhook handler {name} failed for {event_type} {event_id}: {e}")
            return WebhookHandlerOutcomeDTO(handler=name, outcome=ERROR, error=str(e))

    @staticmethod
    def _aggregate(outcomes: List[WebhookHandlerOutcomeDTO]) -> str:
        values = {outcome.outcome for outcome in outcomes}
        for candidate in (ERROR, APPLIED, DUPLICATE):
            if candidate in values:
                return candidate
        return IGNORED

    async def _activate_plan(self, session: Dict[str, Any]) -> HandlerOutcome:
        """checkout.session.completed: pending/awaiting -> active"""
        if session.get("mode") != "subscription":
            return IGNORED, None

        plan_id = (session.get("metadata") or {}).get("paymentPlanId")
        if not plan_id:
            return IGNORED, None

        plan = await self.plan_repo.get_by_id(plan_id)
        if not plan:
            logger.warning(f"Checkout completed for unknown payment plan {plan_id}")
            return IGNORED, None

        activated = await self.plan_repo.activate(
            plan.id,
            subscription_id=session.get("subscription"),
            checkout_session_id=session.get("id"),
            now=datetime.utcnow(),
        )
        plan = await self.plan_repo.refresh(plan)
        if not activated:
            logger.info(f"Checkout completed for payment plan {plan.id} in status {plan.status.value}; ignored")
            return IGNORED, plan.id

        logger.info(f"Payment plan {plan.id} activated (subscription {plan.stripe_subscription_id})")
        return APPLIED, plan.id

    async def _record_installment(self, provider_invoice: Dict[str, Any]) -> HandlerOutcome:
        """invoice.paid: count one installment on an active plan"""
        subscription_id = provider_invoice.get("subscription") or (
            ((provider_invoice.get("parent") or {}).get("subscription_details") or {}).get("subscription")
        )
        if not subscription_id:
            return IGNORED, None

        if provider_invoice.get("billing_reason") == "subscription_create":
            return IGNORED, None

        plan = await self.plan_repo.get_by_subscription_id(subscription_id)
        if not plan:
            return IGNORED, None

        # Increment and completion are separate guarded updates; a concurrent
        # delivery waits on the row and then sees the incremented counter.
        if not await self.plan_repo.increment_installments(plan.id):
            logger.info(f"Payment plan {plan.id} is not active or already fully paid; installment ignored")
            return IGNORED, plan.id

        if await self.plan_repo.complete_if_fully_paid(plan.id, datetime.utcnow()):
            await self.invoice_repo.update_status(plan.invoice_id, InvoiceStatus.PAID)
            logger.info(f"Payment plan {plan.id} completed; invoice {plan.invoice_id} paid")

        plan = await self.plan_repo.refresh(plan)
        logger.info(
            f"Payment plan {plan.id} installment {plan.installments_paid}/{plan.number_of_installments} paid"
        )
        return APPLIED, plan.id

    async def _close_plan(self, subscription: Dict[str, Any]) -> HandlerOutcome:
        """customer.subscription.deleted: active -> completed | cancelled"""
        plan_id = (subscription.get("metadata") or {}).get("paymentPlanId")

        if plan_id:
            plan = await self.plan_repo.get_by_id(plan_id)
        elif subscription.get("id"):
            plan = await self.plan_repo.get_by_subscription_id(subscription["id"])
        else:
            plan = None

        if not plan:
            return IGNORED, None

        now = datetime.utcnow()
        closed = await self.plan_repo.complete_if_fully_paid(plan.id, now) or await self.plan_repo.transition(
            plan.id, (PaymentPlanStatus.ACTIVE,), PaymentPlanStatus.CANCELLED, cancelled_at=now
        )
        if not closed:
            return IGNORED, plan.id

        plan = await self.plan_repo.refresh(plan)
        logger.info(f"Payment plan {plan.id} closed by provider as {plan.status.value}")
        return APPLIED, plan.id
