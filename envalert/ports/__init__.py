"""
Port interfaces for envalert hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .sampler import MetricSamplerPort
from .audience import UserAudienceRegistryPort
from .push import PushTransportPort
from .alert_store import AlertRecordStorePort
from .rule_store import ThresholdRuleStorePort

__all__ = [
    "MetricSamplerPort", "UserAudienceRegistryPort", "PushTransportPort",
    "AlertRecordStorePort", "ThresholdRuleStorePort",
]
