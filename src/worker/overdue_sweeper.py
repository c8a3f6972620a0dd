"""Overdue Sweep Background Worker

Periodically moves pending invoices past their due date to overdue.
Reads already sweep lazily; this worker keeps stored statuses current for
consumers that query the database directly. Safe to run alongside the API
and safe to run repeatedly.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import build_engine
from src.app.use_cases.billing import MarkOverdueInvoices, SweepResultDTO

logger = logging.getLogger(__name__)


class OverdueSweepWorker:
    """
    Background worker for the overdue sweep

    Usage:
        # Run once
        worker = OverdueSweepWorker()
        result = await worker.run_once()

        # Run continuously
        worker = OverdueSweepWorker()
        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        session_factory: Optional[sessionmaker] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing session factory; when given no engine is created
        """
        self.engine = None

        if session_factory is not None:
            self.async_session_factory = session_factory
        else:
            self.engine = build_engine(db_uri or ApplicationConfig.DB_URI)
            self.async_session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )

        logger.info("OverdueSweepWorker initialized")

    async def run_once(self) -> Optional[SweepResultDTO]:
        """
        Run the sweep once

        Returns:
            SweepResultDTO, or None when the sweep is disabled
        """
        if not ApplicationConfig.OVERDUE_SWEEP_ENABLED:
            logger.info("Overdue sweep is disabled, skipping")
            return None

        async with self.async_session_factory() as session:
            use_case = MarkOverdueInvoices(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Overdue sweep failed: {result.error.message} ({result.error.reason})")
                raise RuntimeError(f"Overdue sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 3600):
        """
        Run the sweep continuously at specified interval

        Args:
            interval_seconds: Seconds between runs (default: 1 hour)
        """
        logger.info(f"Starting continuous overdue sweep with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                if result is not None:
                    logger.info(f"Overdue sweep cycle complete, {result.updated_count} invoice(s) marked overdue")
            except Exception as e:
                logger.error(f"Overdue sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("OverdueSweepWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.overdue_sweeper --once

        # Run continuously (default: OVERDUE_SWEEP_INTERVAL_SECONDS)
        python -m src.worker.overdue_sweeper --interval 600
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Overdue Invoice Sweep Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.OVERDUE_SWEEP_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 3600 = 1 hour)"
    )
    args = parser.parse_args()

    worker = OverdueSweepWorker()

    try:
        if args.once:
            result = await worker.run_once()
            if result is not None:
                print(f"Overdue sweep complete: {result.updated_count} invoice(s) marked overdue")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
