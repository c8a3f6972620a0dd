"""Unit tests for OverdueSweepWorker

Tests cover:
- run_once executes the sweep and returns its result
- Disabled sweep is skipped
- Failures raise so run_forever can log them
- Shutdown disposes only an engine the worker created
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from libs.result import Return, Error
from src.worker.overdue_sweeper import OverdueSweepWorker
from src.app.use_cases.billing.dtos import SweepResultDTO


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return session


@pytest.fixture
def worker(mock_session):
    return OverdueSweepWorker(session_factory=MagicMock(return_value=mock_session))


@pytest.mark.asyncio
class TestOverdueSweepWorker:
    async def test_run_once_returns_sweep_result(self, worker):
        sweep = SweepResultDTO(updated_count=4, swept_at=datetime.utcnow())

        with patch("src.worker.overdue_sweeper.MarkOverdueInvoices") as use_case_cls:
            use_case_cls.return_value.execute = AsyncMock(return_value=Return.ok(sweep))
            result = await worker.run_once()

        assert result.updated_count == 4
        use_case_cls.return_value.execute.assert_awaited_once()

    async def test_disabled_sweep_skipped(self, worker):
        with patch("src.worker.overdue_sweeper.ApplicationConfig") as config, \
                patch("src.worker.overdue_sweeper.MarkOverdueInvoices") as use_case_cls:
            config.OVERDUE_SWEEP_ENABLED = False
            result = await worker.run_once()

        assert result is None
        use_case_cls.assert_not_called()

    async def test_failure_raises(self, worker):
        with patch("src.worker.overdue_sweeper.MarkOverdueInvoices") as use_case_cls:
            use_case_cls.return_value.execute = AsyncMock(
                return_value=Return.err(Error(code="OVERDUE_SWEEP_FAILED", message="Failed", reason="db"))
            )
            with pytest.raises(RuntimeError, match="Overdue sweep failed"):
                await worker.run_once()

    async def test_shutdown_without_owned_engine(self, worker):
        assert worker.engine is None
        await worker.shutdown()

    async def test_shutdown_disposes_owned_engine(self):
        engine = MagicMock()
        engine.dispose = AsyncMock()

        with patch("src.worker.overdue_sweeper.build_engine", return_value=engine) as build:
            worker = OverdueSweepWorker(db_uri="sqlite+aiosqlite:///:memory:")
        await worker.shutdown()

        build.assert_called_once_with("sqlite+aiosqlite:///:memory:")
        engine.dispose.assert_awaited_once()

    async def test_owned_engine_enforces_sqlite_foreign_keys(self, tmp_path):
        worker = OverdueSweepWorker(db_uri=f"sqlite+aiosqlite:///{tmp_path / 'sweep.db'}")
        try:
            async with worker.engine.connect() as connection:
                result = await connection.exec_driver_sql("PRAGMA foreign_keys")
                assert result.scalar() == 1
        finally:
            await worker.shutdown()
