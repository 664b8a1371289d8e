"""
Metrics definitions for envalert.

This module defines Prometheus metrics for monitoring
the threshold evaluation and notification pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
snapshots_fetched = Counter(
    "snapshots_fetched_total",
    "Number of station snapshots fetched",
    ["domain"]
)

breaches_detected = Counter(
    "threshold_breaches_total",
    "Number of threshold breaches detected",
    ["domain", "level"]
)

alerts_created = Counter(
    "alerts_created_total",
    "Number of alert records created",
    ["domain", "level", "kind"]
)

alerts_duplicate = Counter(
    "alerts_duplicate_total",
    "Number of breaches suppressed by the dedup window",
    ["domain"]
)

notifications_sent = Counter(
    "notifications_sent_total",
    "Number of push notifications accepted by the transport"
)

notifications_failed = Counter(
    "notifications_failed_total",
    "Number of push notifications rejected per token"
)

tokens_cleared = Counter(
    "push_tokens_cleared_total",
    "Number of invalid push tokens cleared",
    ["reason"]
)

domain_failures = Counter(
    "domain_failures_total",
    "Number of domain evaluations that failed during a tick",
    ["domain"]
)

ticks_total = Counter(
    "scheduler_ticks_total",
    "Number of scheduler ticks by outcome",
    ["outcome"]
)

# 히스토그램 메트릭
tick_seconds = Histogram(
    "tick_duration_seconds",
    "Time spent running one scheduler tick",
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0]
)

dispatch_seconds = Histogram(
    "dispatch_duration_seconds",
    "Time spent dispatching one alert",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0]
)

# 게이지 메트릭
active_rules = Gauge(
    "active_threshold_rules",
    "Number of active threshold rules at the last tick"
)

stored_tokens = Gauge(
    "stored_push_tokens",
    "Number of stored push tokens after the last sweep"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
