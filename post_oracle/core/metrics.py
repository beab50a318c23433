"""Prometheus metrics."""

from prometheus_client import Counter, Gauge, Histogram

# HTTP
REQUESTS_TOTAL = Counter(
    "oracle_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "oracle_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

# Pipeline
PENDING_CONTENT = Gauge(
    "oracle_pending_content",
    "Submissions buffered and waiting for processing",
)

ACTIVE_TASKS = Gauge(
    "oracle_active_tasks",
    "Scheduled similarity checks not yet finished",
)

TRIGGERS_TOTAL = Counter(
    "oracle_triggers_total",
    "Similarity check requests received from the ledger",
)

CONTENT_RETRIES = Counter(
    "oracle_content_retries_total",
    "Pipeline attempts rescheduled because content had not arrived",
)

PIPELINE_OUTCOMES = Counter(
    "oracle_pipeline_outcomes_total",
    "Pipeline results by outcome",
    labelnames=["outcome"],
)

PIPELINE_SCORES = Histogram(
    "oracle_similarity_score",
    "Similarity scores returned by the classifier",
    buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
)
