"""Work Entry Repository Interface

Defines the contract for the work ledger, including the atomic claim used
by invoice generation.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from src.domain.billing_rate import BillingRate
from src.domain.work_entry import WorkEntry


class WorkEntryRepository(ABC):
    """
    Repository interface for WorkEntry persistence

    invoice_id is write-once. The only method that sets it is
    claim_unbilled, which must be a single conditional update so two
    concurrent generators can never claim the same row.
    """

    @abstractmethod
    async def create(self, entry: WorkEntry) -> WorkEntry:
        pass

    @abstractmethod
    async def get_by_id(self, entry_id: str) -> Optional[WorkEntry]:
        pass

    @abstractmethod
    async def list(
        self,
        project_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        unbilled_only: bool = False,
    ) -> List[WorkEntry]:
        """
        List work entries, newest first

        Args:
            project_id: Optional project filter
            customer_id: Optional customer filter
            unbilled_only: Only entries with invoice_id NULL

        Returns:
            List of WorkEntry
        """
        pass

    @abstractmethod
    async def delete(self, entry_id: str) -> bool:
        """
        Delete an entry if it is still unbilled

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    async def claim_unbilled(self, project_id: str, invoice_id: str) -> int:
        """
        Stamp every unbilled entry of the project with invoice_id

        Executed as UPDATE ... WHERE project_id = :project AND invoice_id IS NULL.
        Rows claimed by a concurrent transaction are not matched.

        Args:
            project_id: Project whose unbilled work is claimed
            invoice_id: Invoice being generated

        Returns:
            Number of entries claimed
        """
        pass

    @abstractmethod
    async def get_billed_with_rates(self, invoice_id: str) -> List[Tuple[WorkEntry, BillingRate]]:
        """
        Retrieve the entries billed by an invoice together with their rates

        Args:
            invoice_id: Invoice ID

        Returns:
            List of (WorkEntry, BillingRate) ordered by recorded_at
        """
        pass

    @abstractmethod
    async def unbilled_value_cents(self) -> int:
        """Current value of all unbilled work (quantity x rate), in cents"""
        pass
