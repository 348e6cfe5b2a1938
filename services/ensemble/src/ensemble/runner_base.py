"""
Abstract base class for model runner backends.

Defines the ModelRunner interface every backend must implement: load
and unload a trained model artifact, and run inference on an embedding
to produce a normalised RawModelOutput.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ic_common.models import RawModelOutput


class ModelRunner(ABC):
    """Abstract base class that every model runner must implement.

    Subclasses provide :meth:`load`, :meth:`unload` and :meth:`infer`
    plus the :attr:`is_ready` property. The :attr:`name` property
    returns the model identifier used in verdicts, logs and errors.

    Runners hold only their own model state, so a single loaded runner
    may serve concurrent requests.

    Args:
        name: Model identifier (e.g. ``'logistic_regression'``).
        full_confidence_fallback: When the model exposes no probability
            distribution, treat it as fully confident (1.0) in its label.
            When ``False`` such output is an inference error.
    """

    def __init__(self, name: str, *, full_confidence_fallback: bool = True) -> None:
        self._name = name
        self.full_confidence_fallback = full_confidence_fallback

    @property
    def name(self) -> str:
        """Return the model identifier."""
        return self._name

    @abstractmethod
    async def load(self) -> None:
        """Load the model artifact.

        Raises:
            InferenceError: If the artifact cannot be loaded.
        """
        ...  # pragma: no cover

    @abstractmethod
    async def unload(self) -> None:
        """Release the model artifact and any underlying resources."""
        ...  # pragma: no cover

    @abstractmethod
    async def infer(self, embedding: Sequence[float]) -> RawModelOutput:
        """Predict a class code (and optional distribution) for *embedding*.

        Args:
            embedding: Dense text embedding; must match the model's
                input dimensionality.

        Returns:
            The normalised :class:`RawModelOutput`.

        Raises:
            InferenceError: On dimension mismatch, missing outputs, or
                backend failure.
        """
        ...  # pragma: no cover

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """``True`` once the model is loaded and can serve requests."""
        ...  # pragma: no cover
