"""Payment Provider Webhook Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.services.payment_provider import PaymentProvider
from src.app.use_cases.billing.dtos import WebhookEventCommandDTO, WebhookResultDTO
from src.app.use_cases.billing.reconcile_webhook import ReconcileWebhookEvent
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.payment_plan_repository import SqlAlchemyPaymentPlanRepository
from src.adapter.repositories.webhook_event_repository import SqlAlchemyWebhookEventRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_payment_provider
from src.api.error import ClientError

router = APIRouter(prefix="/billing/webhooks", tags=["Webhooks"])


@router.post("/stripe", response_model=WebhookResultDTO)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    session: AsyncSession = Depends(get_session),
    payment_provider: PaymentProvider = Depends(get_payment_provider)
):
    """
    Receive a Stripe event.

    The raw body is verified against `Stripe-Signature` when a webhook secret
    is configured. Unknown event types and redeliveries are acknowledged
    with 200. A failed handler is rolled back and answered with 500 so that
    Stripe redelivers the event.
    """
    payload = await request.body()

    uow = SqlAlchemyUnitOfWork(session)
    use_case = ReconcileWebhookEvent(
        uow,
        SqlAlchemyPaymentPlanRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyWebhookEventRepository(session),
        payment_provider,
    )
    result = await use_case.execute(WebhookEventCommandDTO(payload=payload, signature=stripe_signature))

    if result.is_err():
        raise ClientError(result.error)
    if result.value.outcome == "error":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=result.value.model_dump(mode="json"),
        )
    return result.value
