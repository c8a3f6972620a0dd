"""Project Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.project import Project


class ProjectRepository(ABC):
    @abstractmethod
    async def get_by_id(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    async def create(self, project: Project) -> Project:
        pass
