"""Agent Cost Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.agent_cost_entry import AgentCostEntry


class AgentCostRepository(ABC):
    """
    Repository interface for AgentCostEntry persistence

    Same write-once invoice_id contract as the work ledger.
    """

    @abstractmethod
    async def create(self, entry: AgentCostEntry) -> AgentCostEntry:
        pass

    @abstractmethod
    async def list(self, project_id: Optional[str] = None) -> List[AgentCostEntry]:
        pass

    @abstractmethod
    async def claim_unbilled(
        self, customer_id: str, invoice_id: str, project_id: Optional[str] = None
    ) -> int:
        """
        Stamp the customer's unbilled agent costs with invoice_id

        Args:
            customer_id: Customer whose costs are claimed
            invoice_id: Invoice being generated
            project_id: Optional project restriction

        Returns:
            Number of entries claimed
        """
        pass

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[AgentCostEntry]:
        pass
