"""Invoice Line Repository Interface

Defines the contract for invoice line persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_line import InvoiceLine


class InvoiceLineRepository(ABC):
    """
    Repository interface for InvoiceLine persistence

    Lines are written once, together with their invoice.
    """

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceLine]:
        """
        Retrieve all line items for an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            List of InvoiceLine items
        """
        pass

    @abstractmethod
    async def create_many(self, lines: List[InvoiceLine]) -> List[InvoiceLine]:
        """
        Persist line items in one flush

        Args:
            lines: InvoiceLine entities to persist

        Returns:
            Created InvoiceLine items
        """
        pass
