"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Provides access to invoice data for billing operations.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional row-level locking

        Args:
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        customer_id: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Invoice]:
        """
        List invoices, newest first

        Args:
            customer_id: Optional filter by customer
            status: Optional filter by status
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def count(self, status: Optional[InvoiceStatus] = None) -> int:
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass

    @abstractmethod
    async def update_status(self, invoice_id: str, status: InvoiceStatus) -> Optional[Invoice]:
        """
        Set the status of an invoice, stamping paid_at on payment

        Args:
            invoice_id: Invoice ID
            status: New status

        Returns:
            Updated Invoice, None if not found
        """
        pass

    @abstractmethod
    async def delete(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    async def generate_invoice_number(self, year: int) -> str:
        """
        Generate the next invoice number

        Format: INV-YYYY-NNNN, where NNNN is derived from the total invoice
        count and bumped past any number already taken.
        Uncommitted numbers of concurrent transactions are not seen; the
        unique constraint rejects the later insert and callers retry.

        Args:
            year: Issue year

        Returns:
            Unused invoice number
        """
        pass

    @abstractmethod
    async def mark_overdue(self, now: datetime) -> int:
        """
        Move pending invoices whose due date has passed to overdue

        Single conditional UPDATE; invoices already overdue are not touched.

        Args:
            now: Reference time

        Returns:
            Number of invoices transitioned
        """
        pass

    @abstractmethod
    async def paid_revenue_cents(self) -> int:
        """Sum of total_amount_cents over paid invoices"""
        pass
