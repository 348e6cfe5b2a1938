"""
Ensemble aggregation.

Combines per-model verdicts into a single decision: a majority vote with
a deterministic tie-break, an unweighted mean confidence, and an
abstention rule that emits ``"others"`` when the mean falls below the
threshold. Aggregation is a pure, synchronous function.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from ic_common.models import ABSTAIN_LABEL, EnsembleResult, ModelVerdict

from ensemble.errors import QuorumError

DEFAULT_THRESHOLD = 0.5


def tally_votes(verdicts: Mapping[str, ModelVerdict]) -> dict[str, int]:
    """Count one vote per model, keeping labels in first-vote order."""
    votes: dict[str, int] = {}
    for verdict in verdicts.values():
        votes[verdict.label] = votes.get(verdict.label, 0) + 1
    return votes


def majority_label(votes: Mapping[str, int]) -> str:
    """Return the label with the highest count.

    Ties go to the label that received its first vote earliest, i.e. the
    first maximum met while scanning *votes* in insertion order. With
    verdicts inserted in query order this is the first tied label in
    model query order.
    """
    best_label = ""
    best_count = 0
    for label, count in votes.items():
        if count > best_count:
            best_label, best_count = label, count
    return best_label


def mean_confidence(verdicts: Mapping[str, ModelVerdict]) -> float:
    """Unweighted arithmetic mean of every model's confidence."""
    confidences = [v.confidence for v in verdicts.values()]
    mean = math.fsum(confidences) / len(confidences)
    # Rounding can push the mean just outside [min, max]; e.g. three 0.4s.
    return min(max(mean, min(confidences)), max(confidences))


def aggregate(
    verdicts: Mapping[str, ModelVerdict],
    threshold: float = DEFAULT_THRESHOLD,
    *,
    missing_models: Iterable[str] = (),
) -> EnsembleResult:
    """Aggregate per-model verdicts into an :class:`EnsembleResult`.

    Args:
        verdicts: Model name to verdict, in the order the models were
            queried. The order decides ties.
        threshold: Minimum mean confidence (inclusive) for the majority
            label to be accepted; below it the result is ``"others"``.
        missing_models: Models that were queried but did not contribute
            (partial quorum); recorded on the result.

    Returns:
        The ensemble result, including every verdict and the vote tally.

    Raises:
        QuorumError: If *verdicts* is empty.
        ValueError: If *threshold* is outside ``[0.0, 1.0]``.
    """
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0.0, 1.0], got {threshold!r}")
    if not verdicts:
        raise QuorumError("no model verdicts to aggregate", missing=list(missing_models))

    votes = tally_votes(verdicts)
    majority = majority_label(votes)
    confidence = mean_confidence(verdicts)
    label = majority if confidence >= threshold else ABSTAIN_LABEL

    return EnsembleResult(
        verdicts=dict(verdicts),
        label=label,
        confidence=confidence,
        votes=votes,
        threshold=threshold,
        missing_models=list(missing_models),
    )
