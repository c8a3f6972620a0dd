"""Payment Plan API Routes"""

from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import AcceptPaymentPlanRequestSchema
from src.app.services.payment_provider import PaymentProvider
from src.app.use_cases.billing.dtos import (
    AcceptPaymentPlanCommandDTO,
    AcceptPaymentPlanResponseDTO,
    PaymentPlanDTO,
)
from src.app.use_cases.billing.payment_plans import (
    AcceptPaymentPlan,
    CancelPaymentPlan,
    GetPaymentPlan,
    ListPaymentPlans,
)
from src.adapter.repositories.customer_repository import SqlAlchemyCustomerRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.payment_plan_repository import SqlAlchemyPaymentPlanRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_payment_provider
from src.api.error import ClientError

router = APIRouter(prefix="/billing/payment-plans", tags=["Payment Plans"])


@router.get("", response_model=List[PaymentPlanDTO])
async def list_payment_plans(
    invoice_id: Optional[str] = Query(default=None),
    customer_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    plan_repo = SqlAlchemyPaymentPlanRepository(session)

    result = await ListPaymentPlans(plan_repo).execute(invoice_id=invoice_id, customer_id=customer_id)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/{plan_id}", response_model=PaymentPlanDTO)
async def get_payment_plan(plan_id: str, session: AsyncSession = Depends(get_session)):
    plan_repo = SqlAlchemyPaymentPlanRepository(session)

    result = await GetPaymentPlan(plan_repo).execute(plan_id)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.post(
    "/{plan_id}/accept",
    response_model=AcceptPaymentPlanResponseDTO,
    responses={
        502: {
            "description": "Payment provider error; the plan is marked failed",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PAYMENT_PROVIDER_ERROR",
                            "message": "Failed to start checkout with the payment provider"
                        }
                    }
                }
            }
        }
    }
)
async def accept_payment_plan(
    plan_id: str,
    request: Optional[AcceptPaymentPlanRequestSchema] = Body(default=None),
    session: AsyncSession = Depends(get_session),
    payment_provider: PaymentProvider = Depends(get_payment_provider)
):
    """
    Accept a pending payment plan and start a subscription checkout.

    The plan moves to awaiting_confirmation; it becomes active only when the
    provider reports the checkout as completed.

    **Example response:**
    ```json
    {
      "payment_plan_id": "...",
      "status": "awaiting_confirmation",
      "checkout_session_id": "cs_test_...",
      "checkout_url": "https://checkout.stripe.com/..."
    }
    ```
    """
    uow = SqlAlchemyUnitOfWork(session)
    use_case = AcceptPaymentPlan(
        uow,
        SqlAlchemyPaymentPlanRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyCustomerRepository(session),
        payment_provider,
    )
    command = AcceptPaymentPlanCommandDTO(
        plan_id=plan_id,
        customer_id=request.customer_id if request else None,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.delete(
    "/{plan_id}",
    response_model=PaymentPlanDTO,
    responses={204: {"description": "No such plan; nothing to cancel"}}
)
async def cancel_payment_plan(
    plan_id: str,
    session: AsyncSession = Depends(get_session),
    payment_provider: PaymentProvider = Depends(get_payment_provider)
):
    """
    Cancel a payment plan.

    Active plans have their provider subscription cancelled and plans awaiting
    confirmation have their checkout expired. Completed, cancelled and failed
    plans are returned unchanged.
    """
    uow = SqlAlchemyUnitOfWork(session)
    use_case = CancelPaymentPlan(uow, SqlAlchemyPaymentPlanRepository(session), payment_provider)

    result = await use_case.execute(plan_id)

    if result.is_err():
        raise ClientError(result.error)
    if result.value is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.value
