"""
Prometheus metrics for BitReview observability.

Defines the counters and histograms emitted while webhooks are
normalized, reviewed and published.
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# Webhook Metrics
# ============================================================================

webhooks_total = Counter(
    "bitreview_webhooks_total",
    "Total webhooks processed, by matched payload variant and outcome",
    labelnames=("source_kind", "outcome"),  # outcome: success/ignored/error
)

pipeline_failures_total = Counter(
    "bitreview_pipeline_failures_total",
    "Total pipeline failures by stage and error class",
    labelnames=("stage", "error"),
)

# ============================================================================
# Model Metrics
# ============================================================================

model_request_duration_seconds = Histogram(
    "bitreview_model_request_duration_seconds",
    "Time taken for model invocation",
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, float("inf")),
)

model_tokens_total = Counter(
    "bitreview_model_tokens_total",
    "Total model tokens reported by the backend",
    labelnames=("direction",),  # direction: input/output
)

# ============================================================================
# Publishing Metrics
# ============================================================================

comments_posted_total = Counter(
    "bitreview_comments_posted_total",
    "Total review comments posted to pull requests",
    labelnames=("source_kind",),
)


def record_tokens(input_tokens: int, output_tokens: int) -> None:
    """Record token usage reported for one model call."""
    if input_tokens:
        model_tokens_total.labels(direction="input").inc(input_tokens)
    if output_tokens:
        model_tokens_total.labels(direction="output").inc(output_tokens)
