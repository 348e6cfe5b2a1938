"""
Intent classification over an ensemble of model runners.

Embeds the query text once, fans the embedding out to every model runner
concurrently, joins on all of them, resolves each raw output into a
ModelVerdict and hands the verdicts to the aggregator. Quorum policy
(strict by default, optionally partial) is enforced here.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Mapping, Sequence

import structlog

from ic_common.metrics import (
    CLASSIFICATION_ERRORS,
    CLASSIFICATION_SECONDS,
    CLASSIFICATIONS,
    MODEL_INFERENCE_SECONDS,
)
from ic_common.models import (
    PROBABILITY_TOLERANCE,
    EnsembleResult,
    ModelVerdict,
    RawModelOutput,
)

from ensemble.aggregator import DEFAULT_THRESHOLD, aggregate
from ensemble.embedding_provider import EmbeddingProvider
from ensemble.errors import (
    ClassificationError,
    ConfigurationError,
    InferenceError,
    ProviderError,
    QuorumError,
)
from ensemble.label_resolver import LabelResolver
from ensemble.runner_base import ModelRunner

logger = structlog.get_logger()

# Confidence assigned to a model that exposes no probability distribution.
FULL_CONFIDENCE = 1.0


def resolve_verdict(
    runner: ModelRunner,
    raw: RawModelOutput,
    resolver: LabelResolver,
) -> ModelVerdict:
    """Turn a runner's raw output into a :class:`ModelVerdict`.

    Confidence is the largest class probability. Without a distribution
    the runner's ``full_confidence_fallback`` policy decides: 1.0 when
    enabled, an :class:`InferenceError` otherwise.

    Raises:
        ConfigurationError: If the label code has no mapping entry.
        InferenceError: If the distribution is empty, its top score is
            not a probability, or it is absent while the fallback is
            disabled.
    """
    label = resolver.resolve(raw.label_code, model=runner.name)

    if raw.probabilities is None:
        if not runner.full_confidence_fallback:
            raise InferenceError(
                f"model '{runner.name}' returned no probabilities and "
                "full-confidence fallback is disabled",
                model=runner.name,
            )
        confidence = FULL_CONFIDENCE
    elif not raw.probabilities:
        raise InferenceError(
            f"model '{runner.name}' returned an empty probability distribution",
            model=runner.name,
        )
    else:
        top = max(raw.probabilities)
        if not math.isfinite(top) or top > 1.0 + PROBABILITY_TOLERANCE:
            raise InferenceError(
                f"model '{runner.name}' returned a score outside [0, 1]: {top!r}",
                model=runner.name,
            )
        # float32 outputs can overshoot 1.0 by an ulp.
        confidence = min(top, 1.0)

    return ModelVerdict(label=label, confidence=confidence)


class IntentClassifier:
    """Ensemble intent classifier wired from injected collaborators.

    All collaborators are created once at startup and shared by every
    request; none of them hold per-request mutable state.

    Args:
        provider: Embedding provider used by :meth:`classify`.
        runners: Model runners, in query order. Order decides vote ties.
        resolver: Class-code to label table.
        default_threshold: Abstention threshold when callers pass none.
        inference_timeout_s: Deadline for all runners; ``None`` waits forever.
        partial_quorum: Aggregate over the runners that answered instead
            of failing when some time out or error.
        min_quorum: Minimum verdicts required in partial-quorum mode.

    Raises:
        ValueError: On an empty or duplicate-named runner list, or an
            unsatisfiable quorum.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        runners: Sequence[ModelRunner],
        resolver: LabelResolver,
        *,
        default_threshold: float = DEFAULT_THRESHOLD,
        inference_timeout_s: float | None = None,
        partial_quorum: bool = False,
        min_quorum: int = 1,
    ) -> None:
        if not runners:
            raise ValueError("at least one model runner is required")
        names = [r.name for r in runners]
        if len(set(names)) != len(names):
            raise ValueError(f"model runner names must be unique, got {names}")
        if partial_quorum and not 1 <= min_quorum <= len(runners):
            raise ValueError(
                f"min_quorum must be between 1 and {len(runners)}, got {min_quorum}"
            )

        self._provider = provider
        self._runners: dict[str, ModelRunner] = {r.name: r for r in runners}
        self._resolver = resolver
        self._default_threshold = self._check_threshold(default_threshold)
        self._timeout = inference_timeout_s
        self._partial_quorum = partial_quorum
        self._min_quorum = min_quorum if partial_quorum else len(runners)

    # ── lifecycle ──

    @property
    def runners(self) -> Mapping[str, ModelRunner]:
        """Model runners keyed by name, in query order."""
        return dict(self._runners)

    @property
    def is_ready(self) -> bool:
        """Whether every runner has its model loaded."""
        return all(r.is_ready for r in self._runners.values())

    async def load(self) -> None:
        """Load every model artifact (once, at startup)."""
        for runner in self._runners.values():
            await runner.load()
        logger.info("ensemble_loaded", models=list(self._runners))

    async def close(self) -> None:
        """Unload every runner and close the embedding provider."""
        try:
            for runner in self._runners.values():
                try:
                    await runner.unload()
                except Exception:
                    logger.error("model_unload_failed", model=runner.name, exc_info=True)
        finally:
            await self._provider.close()
        logger.info("ensemble_closed")

    # ── classification ──

    async def classify(self, text: str, threshold: float | None = None) -> EnsembleResult:
        """Classify *text* into an intent label.

        Args:
            text: Raw query text.
            threshold: Abstention threshold; defaults to the configured one.

        Raises:
            ProviderError: Embedding generation failed.
            InferenceError: A model runner failed (strict quorum).
            ConfigurationError: A label code has no mapping entry.
            QuorumError: Too few verdicts to aggregate.
            ValueError: *threshold* is outside ``[0.0, 1.0]``.
        """
        applied = self._check_threshold(threshold)
        start = time.perf_counter()
        try:
            embedding = await self._embed(text)
            result = await self._predict(embedding, applied)
        except ClassificationError as exc:
            self._record_failure(exc)
            raise
        self._record_success(result, time.perf_counter() - start)
        return result

    async def predict(
        self,
        embedding: Sequence[float],
        threshold: float | None = None,
    ) -> EnsembleResult:
        """Run the ensemble on an already computed *embedding*.

        Raises the same errors as :meth:`classify`, minus
        :class:`ProviderError`.
        """
        applied = self._check_threshold(threshold)
        start = time.perf_counter()
        try:
            result = await self._predict(tuple(embedding), applied)
        except ClassificationError as exc:
            self._record_failure(exc)
            raise
        self._record_success(result, time.perf_counter() - start)
        return result

    # ── internal helpers ──

    def _check_threshold(self, threshold: float | None) -> float:
        if threshold is None:
            return self._default_threshold
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0.0, 1.0], got {threshold!r}")
        return float(threshold)

    async def _embed(self, text: str) -> tuple[float, ...]:
        try:
            vector = await self._provider.get_embedding(text)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ProviderError(f"embedding provider failed: {exc}") from exc
        return tuple(vector)

    async def _verdict(self, runner: ModelRunner, embedding: tuple[float, ...]) -> ModelVerdict:
        with MODEL_INFERENCE_SECONDS.labels(model=runner.name).time():
            try:
                raw = await runner.infer(embedding)
            except ClassificationError:
                raise
            except Exception as exc:
                raise InferenceError(
                    f"model '{runner.name}' failed: {exc}", model=runner.name
                ) from exc
        return resolve_verdict(runner, raw, self._resolver)

    async def _predict(self, embedding: tuple[float, ...], threshold: float) -> EnsembleResult:
        tasks = {
            name: asyncio.create_task(self._verdict(runner, embedding), name=f"infer-{name}")
            for name, runner in self._runners.items()
        }
        try:
            _done, pending = await asyncio.wait(tasks.values(), timeout=self._timeout)
        except asyncio.CancelledError:
            # The caller gave up: stop every runner and never aggregate.
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            raise
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        verdicts: dict[str, ModelVerdict] = {}
        failures: dict[str, ClassificationError] = {}
        timed_out: list[str] = []
        for name, task in tasks.items():
            if task in pending:
                timed_out.append(name)
                continue
            exc = task.exception()
            if exc is None:
                verdicts[name] = task.result()
            elif isinstance(exc, ClassificationError):
                failures[name] = exc
            else:
                raise exc

        # A corrupt label table is never masked, not even by partial quorum.
        for exc in failures.values():
            if isinstance(exc, ConfigurationError):
                raise exc

        missing = [name for name in self._runners if name not in verdicts]
        if not self._partial_quorum:
            if failures:
                raise next(iter(failures.values()))
            if timed_out:
                raise QuorumError(
                    f"models {timed_out} did not respond within {self._timeout}s",
                    missing=timed_out,
                )
        elif missing:
            logger.warning(
                "partial_quorum_models_dropped",
                missing=missing,
                timed_out=timed_out,
                errors={name: str(exc) for name, exc in failures.items()},
            )
            if len(verdicts) < self._min_quorum:
                raise QuorumError(
                    f"only {len(verdicts)} of {len(self._runners)} models answered; "
                    f"{self._min_quorum} required",
                    missing=missing,
                )

        return aggregate(verdicts, threshold, missing_models=missing)

    def _record_success(self, result: EnsembleResult, elapsed_s: float) -> None:
        outcome = "abstained" if result.abstained else "accepted"
        CLASSIFICATIONS.labels(outcome=outcome).inc()
        CLASSIFICATION_SECONDS.observe(elapsed_s)
        logger.info(
            "classification_completed",
            label=result.label,
            confidence=round(result.confidence, 4),
            votes=result.votes,
            outcome=outcome,
            missing=result.missing_models,
        )

    def _record_failure(self, exc: ClassificationError) -> None:
        CLASSIFICATIONS.labels(outcome="error").inc()
        CLASSIFICATION_ERRORS.labels(stage=exc.stage).inc()
        logger.warning("classification_failed", **exc.to_dict())
