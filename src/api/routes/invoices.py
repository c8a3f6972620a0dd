"""Invoice API Routes

FastAPI routes for invoice generation, lifecycle, reads, PDF download and
payment plan offers.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.billing_request import (
    CreatePaymentPlanRequestSchema,
    GenerateAgentCostInvoiceRequestSchema,
    GenerateInvoiceRequestSchema,
    SetInvoiceStatusRequestSchema,
)
from src.app.services.notification_service import NotificationService
from src.app.services.pdf_service import PdfService
from src.app.use_cases.billing.dtos import (
    BillingSummaryDTO,
    CreatePaymentPlanCommandDTO,
    GenerateAgentCostInvoiceCommandDTO,
    GenerateInvoiceCommandDTO,
    InvoiceDTO,
    ListInvoicesQueryDTO,
    PaymentPlanDTO,
    SetInvoiceStatusCommandDTO,
    SweepResultDTO,
)
from src.app.use_cases.billing.generate_invoice import (
    GenerateInvoiceFromAgentCosts,
    GenerateInvoiceFromWork,
)
from src.app.use_cases.billing.invoice_lifecycle import (
    DeleteInvoice,
    MarkOverdueInvoices,
    SetInvoiceStatus,
)
from src.app.use_cases.billing.invoice_queries import GetBillingSummary, GetInvoice, ListInvoices
from src.app.use_cases.billing.payment_plans import CreatePaymentPlan
from src.app.use_cases.billing.render_invoice_pdf import RenderInvoicePdf
from src.adapter.repositories.agent_cost_repository import SqlAlchemyAgentCostRepository
from src.adapter.repositories.customer_repository import SqlAlchemyCustomerRepository
from src.adapter.repositories.invoice_line_repository import SqlAlchemyInvoiceLineRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.payment_plan_repository import SqlAlchemyPaymentPlanRepository
from src.adapter.repositories.project_repository import SqlAlchemyProjectRepository
from src.adapter.repositories.work_entry_repository import SqlAlchemyWorkEntryRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_notification_service, get_pdf_service
from src.domain.invoice import InvoiceStatus
from src.api.error import ClientError

router = APIRouter(prefix="/billing/invoices", tags=["Invoices"])


@router.post(
    "/generate",
    response_model=InvoiceDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        204: {"description": "Nothing to bill: unknown project or no unbilled work"}
    }
)
async def generate_invoice(
    request: GenerateInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Invoice all unbilled work of a project.

    Every unbilled entry is claimed by exactly one invoice, so concurrent
    calls for the same project never bill an entry twice; the losing call
    gets 204.

    **Example request:**
    ```json
    {"project_id": "p1d2e3f4-...", "tax_rate": "8.25", "due_days": 30}
    ```

    **Returns:**
    - 201: Pending invoice with its line items
    - 204: Nothing to bill
    """
    uow = SqlAlchemyUnitOfWork(session)
    use_case = GenerateInvoiceFromWork(
        uow,
        SqlAlchemyProjectRepository(session),
        SqlAlchemyWorkEntryRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        notification_service,
    )
    result = await use_case.execute(GenerateInvoiceCommandDTO(**request.model_dump()))

    if result.is_err():
        raise ClientError(result.error)
    if result.value is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.value


@router.post(
    "/generate-from-agent-costs",
    response_model=InvoiceDTO,
    status_code=status.HTTP_201_CREATED,
    responses={204: {"description": "No unbilled agent costs"}}
)
async def generate_agent_cost_invoice(
    request: GenerateAgentCostInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Invoice a customer's unbilled agent costs (one line per session, no tax)."""
    uow = SqlAlchemyUnitOfWork(session)
    use_case = GenerateInvoiceFromAgentCosts(
        uow,
        SqlAlchemyCustomerRepository(session),
        SqlAlchemyAgentCostRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        notification_service,
    )
    result = await use_case.execute(GenerateAgentCostInvoiceCommandDTO(**request.model_dump()))

    if result.is_err():
        raise ClientError(result.error)
    if result.value is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.value


@router.post("/sweep-overdue", response_model=SweepResultDTO)
async def sweep_overdue_invoices(session: AsyncSession = Depends(get_session)):
    """Mark every pending invoice past its due date as overdue."""
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)

    result = await MarkOverdueInvoices(uow, invoice_repo).execute()

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("/summary", response_model=BillingSummaryDTO)
async def get_billing_summary(session: AsyncSession = Depends(get_session)):
    uow = SqlAlchemyUnitOfWork(session)
    use_case = GetBillingSummary(
        uow,
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyWorkEntryRepository(session),
    )
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=List[InvoiceDTO])
async def list_invoices(
    customer_id: Optional[str] = Query(default=None),
    invoice_status: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session)
):
    """List invoices, newest first. Overdue status is refreshed before reading."""
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)

    query = ListInvoicesQueryDTO(customer_id=customer_id, status=invoice_status, limit=limit, offset=offset)
    result = await ListInvoices(uow, invoice_repo).execute(query)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get(
    "/{invoice_id}",
    response_model=InvoiceDTO,
    responses={
        404: {
            "description": "Invoice not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_NOT_FOUND",
                            "message": "Invoice 6f1c2e9a-... not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_invoice(invoice_id: str, session: AsyncSession = Depends(get_session)):
    uow = SqlAlchemyUnitOfWork(session)
    use_case = GetInvoice(
        uow,
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.put("/{invoice_id}/status", response_model=InvoiceDTO)
async def set_invoice_status(
    invoice_id: str,
    request: SetInvoiceStatusRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Set an invoice's status.

    A paid invoice cannot be moved to another status
    (INVALID_STATUS_TRANSITION).
    """
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)

    command = SetInvoiceStatusCommandDTO(invoice_id=invoice_id, status=request.status)
    result = await SetInvoiceStatus(uow, invoice_repo).execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: str, session: AsyncSession = Depends(get_session)):
    """Delete a draft invoice."""
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)

    result = await DeleteInvoice(uow, invoice_repo).execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{invoice_id}/pdf",
    responses={
        200: {
            "content": {"application/pdf": {}},
            "description": "PDF document"
        },
        404: {"description": "Invoice not found"}
    }
)
async def download_invoice_pdf(
    invoice_id: str,
    session: AsyncSession = Depends(get_session),
    pdf_service: PdfService = Depends(get_pdf_service)
):
    """
    Download an invoice as PDF.

    Draft invoices are rendered as a proforma.
    """
    use_case = RenderInvoicePdf(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceLineRepository(session),
        SqlAlchemyCustomerRepository(session),
        pdf_service,
        company_name=ApplicationConfig.COMPANY_NAME,
        company_address=ApplicationConfig.COMPANY_ADDRESS,
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return Response(
        content=result.value.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename={result.value.filename}"
        }
    )


@router.post(
    "/{invoice_id}/payment-plan",
    response_model=PaymentPlanDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Plan cannot be offered",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PAYMENT_PLAN_EXISTS",
                            "message": "Invoice already has a live payment plan"
                        }
                    }
                }
            }
        }
    }
)
async def create_payment_plan(
    invoice_id: str,
    request: CreatePaymentPlanRequestSchema,
    session: AsyncSession = Depends(get_session),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Offer a payment plan on an unpaid invoice.

    The plan starts pending; the customer accepts it through
    `POST /billing/payment-plans/{plan_id}/accept`.
    """
    uow = SqlAlchemyUnitOfWork(session)
    use_case = CreatePaymentPlan(
        uow,
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentPlanRepository(session),
        notification_service,
    )
    command = CreatePaymentPlanCommandDTO(
        invoice_id=invoice_id,
        number_of_installments=request.number_of_installments,
        frequency=request.frequency,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
