"""
Adapters for envalert hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteRuleStore, SQLiteAlertStore, SQLiteUserRegistry
from .push import ExpoPushTransport, LogPushTransport
from .sampler import HttpMetricSampler

__all__ = [
    "SQLiteRuleStore", "SQLiteAlertStore", "SQLiteUserRegistry",
    "ExpoPushTransport", "LogPushTransport", "HttpMetricSampler",
]
