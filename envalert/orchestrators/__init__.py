"""
Orchestrators for envalert.

This module contains the schedulers that coordinate
the flow between services, ports and adapters.
"""
from .scheduler import AlertScheduler
from .token_sweeper import TokenSweepScheduler

__all__ = ["AlertScheduler", "TokenSweepScheduler"]
