"""
Intent ensemble classification service.

Combines logistic-regression, SVM and k-NN classifiers that share one
text embedding into a single intent label by majority vote, with a
deterministic tie-break and abstention on low aggregate confidence.
"""

from ensemble.aggregator import aggregate
from ensemble.classifier import IntentClassifier, resolve_verdict
from ensemble.embedding_provider import EmbeddingProvider, HttpEmbeddingProvider
from ensemble.errors import (
    ClassificationError,
    ConfigurationError,
    InferenceError,
    ProviderError,
    QuorumError,
)
from ensemble.label_resolver import LabelResolver
from ensemble.runner_base import ModelRunner
from ensemble.runner_registry import (
    clear_registry,
    get_runner_builder,
    list_runners,
    register_runner,
)

__all__ = [
    "ClassificationError",
    "ConfigurationError",
    "EmbeddingProvider",
    "HttpEmbeddingProvider",
    "InferenceError",
    "IntentClassifier",
    "LabelResolver",
    "ModelRunner",
    "ProviderError",
    "QuorumError",
    "aggregate",
    "clear_registry",
    "get_runner_builder",
    "list_runners",
    "register_runner",
    "resolve_verdict",
]
