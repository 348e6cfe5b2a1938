"""
Error taxonomy for the intent ensemble service.

Every failure surfaced by :func:`ensemble.classifier.IntentClassifier.classify`
is a :class:`ClassificationError` subclass carrying the pipeline stage
and, where one is involved, the model name.
"""

from __future__ import annotations

from typing import Any


class ClassificationError(Exception):
    """Base class for classification failures.

    Args:
        message: Human-readable description.
        stage: Pipeline stage that failed.
        model: Name of the model involved, if any.
    """

    stage: str = "classification"

    def __init__(self, message: str, *, stage: str | None = None, model: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage
        self.model = model

    def to_dict(self) -> dict[str, Any]:
        """Serialisable error context for logs and HTTP responses."""
        return {
            "error": type(self).__name__,
            "stage": self.stage,
            "model": self.model,
            "detail": str(self),
        }


class ProviderError(ClassificationError):
    """Embedding generation failed (upstream unreachable or malformed data)."""

    stage = "embedding"


class InferenceError(ClassificationError):
    """A model runner failed or returned an unexpected output shape."""

    stage = "inference"


class ConfigurationError(ClassificationError):
    """Label mapping is missing, malformed, or out of sync with a model.

    Args:
        message: Human-readable description.
        code: Offending raw label code, when resolution failed.
    """

    stage = "label_resolution"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        model: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage, model=model)
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        """Error context including the offending label code."""
        return {**super().to_dict(), "code": self.code}


class QuorumError(ClassificationError):
    """Too few model verdicts are available to aggregate.

    Args:
        message: Human-readable description.
        missing: Names of the models that did not contribute.
    """

    stage = "aggregation"

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])

    def to_dict(self) -> dict[str, Any]:
        """Error context including the models that did not contribute."""
        return {**super().to_dict(), "missing": list(self.missing)}
