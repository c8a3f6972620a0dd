"""Agent Cost Ledger API Routes"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import RecordAgentCostRequestSchema
from src.app.use_cases.billing.dtos import AgentCostDTO, RecordAgentCostCommandDTO
from src.app.use_cases.billing.manage_agent_costs import ListAgentCosts, RecordAgentCost
from src.adapter.repositories.agent_cost_repository import SqlAlchemyAgentCostRepository
from src.adapter.repositories.project_repository import SqlAlchemyProjectRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/billing/agent-costs", tags=["Agent Costs"])


@router.post("", response_model=AgentCostDTO, status_code=status.HTTP_201_CREATED)
async def record_agent_cost(
    request: RecordAgentCostRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Record the cost of an AI agent session.

    The client charge is the raw cost plus `markup_percent`, rounded to the
    nearest cent. The customer defaults to the project's customer.
    """
    uow = SqlAlchemyUnitOfWork(session)
    agent_cost_repo = SqlAlchemyAgentCostRepository(session)
    project_repo = SqlAlchemyProjectRepository(session)

    command = RecordAgentCostCommandDTO(**request.model_dump())
    result = await RecordAgentCost(uow, agent_cost_repo, project_repo).execute(command)

    if result.is_err():
        raise ClientError(result.error)
    return result.value


@router.get("", response_model=List[AgentCostDTO])
async def list_agent_costs(
    project_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    agent_cost_repo = SqlAlchemyAgentCostRepository(session)

    result = await ListAgentCosts(agent_cost_repo).execute(project_id=project_id)

    if result.is_err():
        raise ClientError(result.error)
    return result.value
