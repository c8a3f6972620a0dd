"""Billing Rate Repository Interface

Defines the contract for the rate catalog.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.billing_rate import BillingRate


class BillingRateRepository(ABC):
    """
    Repository interface for BillingRate persistence

    The catalog is read-mostly; writes come from admin operations.
    """

    @abstractmethod
    async def create(self, rate: BillingRate) -> BillingRate:
        """
        Create a new billing rate

        Args:
            rate: BillingRate entity to persist

        Returns:
            Created BillingRate
        """
        pass

    @abstractmethod
    async def get_by_id(self, rate_id: str) -> Optional[BillingRate]:
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[BillingRate]:
        pass

    @abstractmethod
    async def list(self, active_only: bool = False) -> List[BillingRate]:
        """
        List rates ordered by name

        Args:
            active_only: Only return rates usable for new work

        Returns:
            List of BillingRate
        """
        pass

    @abstractmethod
    async def update(self, rate: BillingRate) -> BillingRate:
        pass

    @abstractmethod
    async def is_referenced(self, rate_id: str) -> bool:
        """
        Check whether any work entry uses the rate

        Args:
            rate_id: Rate ID

        Returns:
            True if at least one work entry references the rate
        """
        pass
