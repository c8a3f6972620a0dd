"""Background workers for billing service"""
from .overdue_sweeper import OverdueSweepWorker

__all__ = ["OverdueSweepWorker"]
