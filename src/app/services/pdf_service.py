"""PDF Generation Service Interface

Defines the contract for PDF generation operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.customer import Customer
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine


class PdfService(ABC):
    """
    Service interface for PDF generation

    Provides PDF generation capabilities for invoices.
    """

    @abstractmethod
    def render_invoice(
        self,
        invoice: Invoice,
        invoice_lines: List[InvoiceLine],
        customer: Optional[Customer] = None,
        company_name: str = "Billing Hub",
        company_address: str = "",
    ) -> bytes:
        """
        Render an invoice PDF

        Draft invoices are labelled as proforma.

        Args:
            invoice: Invoice entity with billing details
            invoice_lines: List of line items for the invoice
            customer: Billed customer, if known
            company_name: Company name to display on invoice
            company_address: Company address to display on invoice

        Returns:
            PDF document as bytes
        """
        pass
