"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behavior import and bump them.  Counters only go up, so tests assert
on before/after deltas against the default registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# --- HTTP (MetricsMiddleware) ---

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# --- Progress engines ---

MODULE_COMPLETIONS = Counter(
    "module_completions_total",
    "Module completion events by outcome",
    ["result"],  # completed|already_completed
)

COURSE_COMPLETIONS = Counter(
    "course_completions_total",
    "Courses that transitioned to completed",
)

QUIZ_SUBMISSIONS = Counter(
    "quiz_submissions_total",
    "Quiz submissions folded into the rolling average, by outcome",
    ["result"],  # accepted|duplicate|invalid
)

OPTIMISTIC_LOCK_RETRIES = Counter(
    "optimistic_lock_retries_total",
    "Versioned writes that lost a race and were retried",
    ["operation"],
)

READINESS_COMPUTATIONS = Counter(
    "readiness_computations_total",
    "Readiness snapshots computed, by resulting status tier",
    ["status"],
)

# --- Infrastructure ---

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # hit|miss
)

QUEUE_DEPTH = Gauge(
    "task_queue_depth",
    "Number of messages waiting in a queue",
    ["queue_name"],
)
