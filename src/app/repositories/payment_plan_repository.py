"""Payment Plan Repository Interface

Defines the contract for payment plan persistence. Status changes go
through guarded methods that apply a single conditional UPDATE and report
whether the row matched, so webhook deliveries and admin actions racing on
the same plan never overwrite each other.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Sequence
from src.domain.payment_plan import PaymentPlan, PaymentPlanStatus


class PaymentPlanRepository(ABC):
    @abstractmethod
    async def create(self, plan: PaymentPlan) -> PaymentPlan:
        pass

    @abstractmethod
    async def get_by_id(self, plan_id: str, for_update: bool = False) -> Optional[PaymentPlan]:
        """
        Retrieve plan by ID with optional row-level locking

        Args:
            plan_id: Plan ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            PaymentPlan if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_subscription_id(
        self, subscription_id: str, for_update: bool = False
    ) -> Optional[PaymentPlan]:
        """
        Retrieve plan by provider subscription id

        Args:
            subscription_id: Provider subscription id (sub_...)
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            PaymentPlan if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_live_for_invoice(self, invoice_id: str) -> Optional[PaymentPlan]:
        """
        Retrieve the plan of an invoice that is pending, awaiting
        confirmation or active

        Returns:
            PaymentPlan if one is live, None otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        invoice_id: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> List[PaymentPlan]:
        pass

    @abstractmethod
    async def transition(
        self,
        plan_id: str,
        from_statuses: Sequence[PaymentPlanStatus],
        to_status: PaymentPlanStatus,
        **values,
    ) -> bool:
        """
        Move a plan to to_status only if it is still in one of from_statuses

        Args:
            plan_id: Plan ID
            from_statuses: Statuses the plan must currently be in
            to_status: New status
            **values: Extra columns written with the status change

        Returns:
            True if the plan changed, False if it had already moved on
        """
        pass

    @abstractmethod
    async def activate(
        self,
        plan_id: str,
        subscription_id: Optional[str],
        checkout_session_id: Optional[str],
        now: datetime,
    ) -> bool:
        """
        Activate a pending or awaiting plan with its provider subscription

        Keeps an existing start date and checkout session id.

        Returns:
            True if the plan was activated
        """
        pass

    @abstractmethod
    async def increment_installments(self, plan_id: str) -> bool:
        """
        Count one paid installment on an active plan that is not yet fully paid

        Returns:
            True if the counter moved
        """
        pass

    @abstractmethod
    async def complete_if_fully_paid(self, plan_id: str, now: datetime) -> bool:
        """
        Complete an active plan once every installment is paid

        Returns:
            True if this call completed the plan
        """
        pass

    @abstractmethod
    async def refresh(self, plan: PaymentPlan) -> PaymentPlan:
        """Reload a plan after a guarded change"""
        pass
