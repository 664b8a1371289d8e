"""
Core domain models and pure functions for envalert.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    AlertRecord, AudienceMember, Breach, DispatchResult, Location, MetricSnapshot,
    Polygon, PushPayload, ThresholdRule,
)
from .evaluator import ThresholdEvaluator, compare, evaluate, extract_metric
from .geo_buffer import build_buffer_polygon

__all__ = [
    "AlertRecord", "AudienceMember", "Breach", "DispatchResult", "Location", "MetricSnapshot",
    "Polygon", "PushPayload", "ThresholdRule",
    "ThresholdEvaluator", "compare", "evaluate", "extract_metric", "build_buffer_polygon",
]
