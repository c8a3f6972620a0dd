"""Agent Cost Ledger Use Cases"""

from datetime import datetime
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.agent_cost_repository import AgentCostRepository
from src.app.repositories.project_repository import ProjectRepository
from src.domain.agent_cost_entry import AgentCostEntry
from .dtos import AgentCostDTO, RecordAgentCostCommandDTO


class RecordAgentCost:
    """
    Use Case: Record the cost of an AI agent session

    Business Rules:
    1. If a project is given it must exist, and its customer is used when
       no customer is given
    2. A customer must be resolved
    3. client_charge = round(cost * (1 + markup / 100))
    """

    def __init__(
        self,
        uow: UnitOfWork,
        agent_cost_repo: AgentCostRepository,
        project_repo: ProjectRepository,
    ):
        self.uow = uow
        self.agent_cost_repo = agent_cost_repo
        self.project_repo = project_repo

    async def execute(self, command: RecordAgentCostCommandDTO) -> Result[AgentCostDTO]:
        try:
            customer_id = command.customer_id

            if command.project_id:
                project = await self.project_repo.get_by_id(command.project_id)
                if not project:
                    return Return.err(
                        Error(code="PROJECT_NOT_FOUND", message=f"Project {command.project_id} not found")
                    )
                customer_id = customer_id or project.customer_id

            if not customer_id:
                return Return.err(
                    Error(
                        code="CUSTOMER_NOT_FOUND",
                        message="Agent costs must belong to a customer",
                        reason="Neither customer_id nor a project was given",
                    )
                )

            entry = AgentCostEntry(
                project_id=command.project_id,
                customer_id=customer_id,
                description=command.description,
                agent_cost_cents=command.agent_cost_cents,
                markup_percent=command.markup_percent,
                client_charge_cents=AgentCostEntry.compute_client_charge(
                    command.agent_cost_cents, command.markup_percent
                ),
                session_date=command.session_date or datetime.utcnow(),
            )
            created = await self.agent_cost_repo.create(entry)
            await self.uow.commit()

            return Return.ok(AgentCostDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(code="RECORD_AGENT_COST_FAILED", message="Failed to record agent cost", reason=str(e))
            )


class ListAgentCosts:
    def __init__(self, agent_cost_repo: AgentCostRepository):
        self.agent_cost_repo = agent_cost_repo

    async def execute(self, project_id: Optional[str] = None) -> Result[List[AgentCostDTO]]:
        try:
            entries = await self.agent_cost_repo.list(project_id=project_id)
            return Return.ok([AgentCostDTO.from_entity(entry) for entry in entries])
        except Exception as e:
            return Return.err(
                Error(code="LIST_AGENT_COSTS_FAILED", message="Failed to list agent costs", reason=str(e))
            )
