"""
Prometheus metrics helpers for the intent ensemble.

Shared metric definitions exposed by the service at ``/metrics``:
classification outcomes, errors by stage, and latency histograms for
the whole request and for each model runner.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

CLASSIFICATIONS = Counter(
    "ic_classifications_total",
    "Ensemble classifications by outcome.",
    ["outcome"],
)

CLASSIFICATION_ERRORS = Counter(
    "ic_classification_errors_total",
    "Failed classifications by pipeline stage.",
    ["stage"],
)

MODEL_INFERENCE_SECONDS = Histogram(
    "ic_model_inference_seconds",
    "Per-model inference latency.",
    ["model"],
)

CLASSIFICATION_SECONDS = Histogram(
    "ic_classification_seconds",
    "End-to-end ensemble prediction latency.",
)
