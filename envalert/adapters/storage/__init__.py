"""
Storage adapters for envalert hexagonal architecture.

This module contains the aiosqlite-backed stores for threshold rules,
alert records and the user audience registry.
"""

from .sqlite_rules import SQLiteRuleStore
from .sqlite_alerts import SQLiteAlertStore
from .sqlite_users import SQLiteUserRegistry

__all__ = ["SQLiteRuleStore", "SQLiteAlertStore", "SQLiteUserRegistry"]
