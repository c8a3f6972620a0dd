"""RenderInvoicePdf Use Case

Renders an invoice as a PDF document. Draft invoices come out as proforma.
"""

from libs.result import Result, Return, Error
from src.app.repositories.customer_repository import CustomerRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.services.pdf_service import PdfService
from .dtos import InvoicePdfDTO


class RenderInvoicePdf:
    """
    Use Case: Render invoice PDF

    Flow:
    1. Retrieve invoice by ID
    2. Retrieve line items and customer
    3. Generate PDF using PDF service
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        customer_repo: CustomerRepository,
        pdf_service: PdfService,
        company_name: str = "Billing Hub",
        company_address: str = "",
    ):
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.customer_repo = customer_repo
        self.pdf_service = pdf_service
        self.company_name = company_name
        self.company_address = company_address

    async def execute(self, invoice_id: str) -> Result[InvoicePdfDTO]:
        try:
            # Step 1: Retrieve invoice
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            # Step 2: Retrieve line items and customer
            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)
            customer = await self.customer_repo.get_by_id(invoice.customer_id)

            # Step 3: Generate PDF
            content = self.pdf_service.render_invoice(
                invoice=invoice,
                invoice_lines=lines,
                customer=customer,
                company_name=self.company_name,
                company_address=self.company_address,
            )

            return Return.ok(InvoicePdfDTO(filename=f"{invoice.invoice_number}.pdf", content=content))

        except Exception as e:
            return Return.err(
                Error(code="RENDER_INVOICE_PDF_FAILED", message="Failed to render invoice PDF", reason=str(e))
            )
