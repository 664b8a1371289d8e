"""
Metric sampler adapters for envalert.
"""

from .http_sampler import HttpMetricSampler

__all__ = ["HttpMetricSampler"]
