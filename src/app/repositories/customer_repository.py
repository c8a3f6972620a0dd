"""Customer Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.customer import Customer


class CustomerRepository(ABC):
    @abstractmethod
    async def get_by_id(self, customer_id: str) -> Optional[Customer]:
        pass

    @abstractmethod
    async def create(self, customer: Customer) -> Customer:
        pass

    @abstractmethod
    async def update(self, customer: Customer) -> Customer:
        pass
