"""Unit tests for the rate catalog, work ledger and agent cost ledger"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.billing.manage_billing_rates import CreateBillingRate, UpdateBillingRate
from src.app.use_cases.billing.manage_work_entries import DeleteWorkEntry, RecordWorkEntry
from src.app.use_cases.billing.manage_agent_costs import RecordAgentCost
from src.app.use_cases.billing.dtos import (
    CreateBillingRateCommandDTO,
    RecordAgentCostCommandDTO,
    RecordWorkEntryCommandDTO,
    UpdateBillingRateCommandDTO,
)
from src.domain.billing_rate import BillingRate
from src.domain.project import Project
from src.domain.work_entry import WorkEntry


@pytest.fixture
def rate():
    return BillingRate(id="rate-1", code="DEV", name="Development", unit_label="hour", rate_cents=5000)


@pytest.fixture
def mock_rate_repo(rate):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=rate)
    repo.get_by_code = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda r: r)
    repo.update = AsyncMock(side_effect=lambda r: r)
    repo.is_referenced = AsyncMock(return_value=False)
    return repo


@pytest.fixture
def mock_project_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=Project(id="proj-1", customer_id="cust-1", name="Website"))
    return repo


@pytest.fixture
def mock_work_entry_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda entry: entry)
    return repo


@pytest.mark.asyncio
class TestRateCatalog:
    async def test_create_rate(self, mock_uow, mock_rate_repo):
        command = CreateBillingRateCommandDTO(code="DEV", name="Development", rate_cents=5000)

        result = await CreateBillingRate(mock_uow, mock_rate_repo).execute(command)

        assert result.is_ok()
        assert result.value.code == "DEV"
        assert result.value.unit_label == "hour"
        mock_uow.commit.assert_awaited_once()

    async def test_duplicate_code(self, mock_uow, mock_rate_repo, rate):
        mock_rate_repo.get_by_code = AsyncMock(return_value=rate)

        result = await CreateBillingRate(mock_uow, mock_rate_repo).execute(
            CreateBillingRateCommandDTO(code="DEV", name="Other", rate_cents=1)
        )

        assert result.is_err()
        assert result.error.code == "BILLING_RATE_CODE_EXISTS"

    async def test_price_change_rejected_once_referenced(self, mock_uow, mock_rate_repo):
        mock_rate_repo.is_referenced = AsyncMock(return_value=True)

        result = await UpdateBillingRate(mock_uow, mock_rate_repo).execute(
            UpdateBillingRateCommandDTO(rate_id="rate-1", rate_cents=6000)
        )

        assert result.is_err()
        assert result.error.code == "BILLING_RATE_IN_USE"
        mock_rate_repo.update.assert_not_called()

    async def test_referenced_rate_can_still_be_renamed_and_deactivated(self, mock_uow, mock_rate_repo):
        mock_rate_repo.is_referenced = AsyncMock(return_value=True)

        result = await UpdateBillingRate(mock_uow, mock_rate_repo).execute(
            UpdateBillingRateCommandDTO(rate_id="rate-1", name="Senior development", is_active=False)
        )

        assert result.is_ok()
        assert result.value.name == "Senior development"
        assert result.value.is_active is False
        assert result.value.rate_cents == 5000
        mock_rate_repo.is_referenced.assert_not_called()

    async def test_unreferenced_price_change(self, mock_uow, mock_rate_repo):
        result = await UpdateBillingRate(mock_uow, mock_rate_repo).execute(
            UpdateBillingRateCommandDTO(rate_id="rate-1", rate_cents=6000)
        )

        assert result.is_ok()
        assert result.value.rate_cents == 6000


@pytest.mark.asyncio
class TestWorkLedger:
    async def test_record_entry_uses_project_customer(
        self, mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo
    ):
        command = RecordWorkEntryCommandDTO(project_id="proj-1", rate_id="rate-1", quantity=Decimal("2.5"))

        result = await RecordWorkEntry(mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo).execute(
            command
        )

        assert result.is_ok()
        assert result.value.customer_id == "cust-1"
        assert result.value.billing_state == "unbilled"
        assert result.value.invoice_id is None
        mock_uow.commit.assert_awaited_once()

    async def test_inactive_rate_rejected(
        self, mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo, rate
    ):
        rate.is_active = False

        result = await RecordWorkEntry(mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo).execute(
            RecordWorkEntryCommandDTO(project_id="proj-1", rate_id="rate-1", quantity=Decimal("1"))
        )

        assert result.is_err()
        assert result.error.code == "BILLING_RATE_INACTIVE"
        mock_work_entry_repo.create.assert_not_called()

    async def test_unknown_project(self, mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo):
        mock_project_repo.get_by_id = AsyncMock(return_value=None)

        result = await RecordWorkEntry(mock_uow, mock_work_entry_repo, mock_project_repo, mock_rate_repo).execute(
            RecordWorkEntryCommandDTO(project_id="nope", rate_id="rate-1", quantity=Decimal("1"))
        )

        assert result.is_err()
        assert result.error.code == "PROJECT_NOT_FOUND"

    async def test_delete_billed_entry_rejected(self, mock_uow, mock_work_entry_repo):
        mock_work_entry_repo.get_by_id = AsyncMock(
            return_value=WorkEntry(id="w1", project_id="p", customer_id="c", rate_id="r",
                                   quantity=Decimal("1"), invoice_id="inv-1")
        )
        mock_work_entry_repo.delete = AsyncMock()

        result = await DeleteWorkEntry(mock_uow, mock_work_entry_repo).execute("w1")

        assert result.is_err()
        assert result.error.code == "WORK_ENTRY_ALREADY_BILLED"
        mock_work_entry_repo.delete.assert_not_called()

    async def test_delete_loses_race_with_claim(self, mock_uow, mock_work_entry_repo):
        mock_work_entry_repo.get_by_id = AsyncMock(
            return_value=WorkEntry(id="w1", project_id="p", customer_id="c", rate_id="r", quantity=Decimal("1"))
        )
        mock_work_entry_repo.delete = AsyncMock(return_value=False)

        result = await DeleteWorkEntry(mock_uow, mock_work_entry_repo).execute("w1")

        assert result.is_err()
        assert result.error.code == "WORK_ENTRY_ALREADY_BILLED"
        mock_uow.commit.assert_not_called()

    async def test_delete_unbilled_entry(self, mock_uow, mock_work_entry_repo):
        mock_work_entry_repo.get_by_id = AsyncMock(
            return_value=WorkEntry(id="w1", project_id="p", customer_id="c", rate_id="r", quantity=Decimal("1"))
        )
        mock_work_entry_repo.delete = AsyncMock(return_value=True)

        result = await DeleteWorkEntry(mock_uow, mock_work_entry_repo).execute("w1")

        assert result.is_ok()
        mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
class TestAgentCostLedger:
    @pytest.fixture
    def mock_agent_cost_repo(self):
        repo = MagicMock()
        repo.create = AsyncMock(side_effect=lambda entry: entry)
        return repo

    async def test_markup_applied_and_customer_from_project(
        self, mock_uow, mock_agent_cost_repo, mock_project_repo
    ):
        command = RecordAgentCostCommandDTO(description="Refactor", agent_cost_cents=333, project_id="proj-1")

        result = await RecordAgentCost(mock_uow, mock_agent_cost_repo, mock_project_repo).execute(command)

        assert result.is_ok()
        assert result.value.client_charge_cents == 500
        assert result.value.markup_percent == 50
        assert result.value.customer_id == "cust-1"

    async def test_customer_required(self, mock_uow, mock_agent_cost_repo, mock_project_repo):
        result = await RecordAgentCost(mock_uow, mock_agent_cost_repo, mock_project_repo).execute(
            RecordAgentCostCommandDTO(description="Orphan", agent_cost_cents=100)
        )

        assert result.is_err()
        assert result.error.code == "CUSTOMER_NOT_FOUND"
        mock_agent_cost_repo.create.assert_not_called()


def test_work_quantity_must_be_positive():
    with pytest.raises(ValueError):
        RecordWorkEntryCommandDTO(project_id="proj-1", rate_id="rate-1", quantity=Decimal("0"))
