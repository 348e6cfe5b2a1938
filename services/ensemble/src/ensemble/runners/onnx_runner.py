"""
ONNX Runtime model runner.

Runs scikit-learn classifiers exported to ONNX (logistic regression,
SVM, k-NN) with ``onnxruntime``. The session is created once at load
time; inference is executed in a worker thread so the event loop is
never blocked, and backend output names are normalised into a
RawModelOutput.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np
import onnxruntime as ort
import structlog

from ic_common.models import RawModelOutput

from ensemble.errors import InferenceError
from ensemble.runner_base import ModelRunner

logger = structlog.get_logger()

# Output names emitted by skl2onnx converters, with their older aliases.
_LABEL_OUTPUTS = ("output_label", "label")
_PROBABILITY_OUTPUTS = ("output_probability", "probability")


def _to_python(value: Any) -> Any:
    """Unwrap numpy scalars into plain Python values."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def _first_output(outputs: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = outputs.get(name)
        if value is not None:
            return value
    return None


class OnnxModelRunner(ModelRunner):
    """Model runner backed by an ``onnxruntime.InferenceSession``.

    Args:
        name: Model identifier (e.g. ``'svm'``).
        model_path: Path to the ``.onnx`` artifact.
        input_name: Graph input fed with the ``[1, dim]`` float32 batch.
        full_confidence_fallback: See :class:`ModelRunner`.
        providers: onnxruntime execution providers.
    """

    def __init__(
        self,
        name: str,
        model_path: str | Path,
        *,
        input_name: str = "float_input",
        full_confidence_fallback: bool = True,
        providers: Sequence[str] = ("CPUExecutionProvider",),
    ) -> None:
        super().__init__(name, full_confidence_fallback=full_confidence_fallback)
        self._model_path = Path(model_path)
        self._input_name = input_name
        self._providers = list(providers)
        self._session: ort.InferenceSession | None = None
        self._output_names: list[str] = []
        self._input_dim: int | None = None

    # ── ModelRunner interface ──

    @property
    def is_ready(self) -> bool:
        """Whether the ONNX session has been created."""
        return self._session is not None

    @property
    def input_dim(self) -> int | None:
        """Embedding width declared by the model graph, if fixed."""
        return self._input_dim

    async def load(self) -> None:
        """Create the inference session off the event loop."""
        if self._session is not None:
            return
        try:
            session = await asyncio.to_thread(
                ort.InferenceSession,
                str(self._model_path),
                providers=self._providers,
            )
        except Exception as exc:
            raise InferenceError(
                f"failed to load model '{self.name}' from {self._model_path}: {exc}",
                stage="startup",
                model=self.name,
            ) from exc

        inputs = {i.name: i for i in session.get_inputs()}
        if self._input_name not in inputs:
            raise InferenceError(
                f"model '{self.name}' has no input '{self._input_name}'; "
                f"inputs are {sorted(inputs)}",
                stage="startup",
                model=self.name,
            )
        shape = list(inputs[self._input_name].shape or [])
        self._input_dim = shape[1] if len(shape) >= 2 and isinstance(shape[1], int) else None
        self._output_names = [o.name for o in session.get_outputs()]
        self._session = session
        logger.info(
            "model_loaded",
            model=self.name,
            path=str(self._model_path),
            input_dim=self._input_dim,
            outputs=self._output_names,
        )

    async def unload(self) -> None:
        """Drop the inference session."""
        self._session = None
        logger.info("model_unloaded", model=self.name)

    async def infer(self, embedding: Sequence[float]) -> RawModelOutput:
        """Run the model on *embedding* and normalise its outputs."""
        session = self._session
        if session is None:
            raise InferenceError(f"model '{self.name}' is not loaded", model=self.name)

        batch = self._to_batch(embedding)
        try:
            raw_outputs = await asyncio.to_thread(
                session.run, None, {self._input_name: batch}
            )
        except Exception as exc:
            raise InferenceError(
                f"model '{self.name}' failed during inference: {exc}",
                model=self.name,
            ) from exc

        return self._normalise(dict(zip(self._output_names, raw_outputs)))

    # ── internal helpers ──

    def _to_batch(self, embedding: Sequence[float]) -> np.ndarray:
        """Convert *embedding* into a validated ``[1, dim]`` float32 batch."""
        try:
            vector = np.asarray(embedding, dtype=np.float32)
        except (TypeError, ValueError) as exc:
            raise InferenceError(
                f"embedding for model '{self.name}' is not numeric: {exc}",
                model=self.name,
            ) from exc
        if vector.ndim != 1 or vector.size == 0:
            raise InferenceError(
                f"embedding for model '{self.name}' must be a non-empty flat vector",
                model=self.name,
            )
        if self._input_dim is not None and vector.size != self._input_dim:
            raise InferenceError(
                f"embedding dimension {vector.size} does not match model "
                f"'{self.name}' input dimension {self._input_dim}",
                model=self.name,
            )
        if not np.all(np.isfinite(vector)):
            raise InferenceError(
                f"embedding for model '{self.name}' contains non-finite values",
                model=self.name,
            )
        return vector.reshape(1, -1)

    def _normalise(self, outputs: Mapping[str, Any]) -> RawModelOutput:
        """Map backend output names and shapes onto :class:`RawModelOutput`."""
        label_out = _first_output(outputs, _LABEL_OUTPUTS)
        if label_out is None:
            raise InferenceError(
                f"model '{self.name}' returned no label output; got {sorted(outputs)}",
                model=self.name,
            )
        labels = np.asarray(label_out).ravel()
        if labels.size == 0:
            raise InferenceError(f"model '{self.name}' returned an empty label", model=self.name)
        label_code = _to_python(labels[0])

        probabilities: list[float] | None = None
        prob_out = _first_output(outputs, _PROBABILITY_OUTPUTS)
        if prob_out is not None:
            try:
                if isinstance(prob_out, list) and prob_out and isinstance(prob_out[0], Mapping):
                    # ZipMap output: one {class: probability} mapping per row.
                    probabilities = [float(p) for p in prob_out[0].values()]
                else:
                    arr = np.asarray(prob_out, dtype=np.float64)
                    probabilities = (arr[0] if arr.ndim == 2 else arr.ravel()).tolist()
            except (TypeError, ValueError) as exc:
                raise InferenceError(
                    f"model '{self.name}' returned malformed probabilities: {exc}",
                    model=self.name,
                ) from exc

        try:
            return RawModelOutput(label_code=label_code, probabilities=probabilities)
        except ValueError as exc:
            raise InferenceError(
                f"model '{self.name}' returned an invalid output: {exc}",
                model=self.name,
            ) from exc
