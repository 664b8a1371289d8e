"""
Application services for envalert.

This module contains the rule management, deduplication, audience,
dispatch, token lifecycle and alert services that sit between the
core domain and the orchestrators.
"""

from .threshold_store import ThresholdStore
from .dedup import DeduplicationGuard
from .audience import GeoAudienceResolver
from .dispatcher import NotificationDispatcher
from .token_lifecycle import TokenLifecycleManager
from .alerts import AlertService

__all__ = [
    "ThresholdStore", "DeduplicationGuard", "GeoAudienceResolver",
    "NotificationDispatcher", "TokenLifecycleManager", "AlertService",
]
