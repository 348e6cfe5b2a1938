"""
Tests for ensemble aggregation.

Validates the vote tally, majority selection and its tie-break, mean
confidence, the inclusive abstention threshold and quorum handling.
"""

from __future__ import annotations

import pytest

from ic_common.models import ABSTAIN_LABEL, ModelVerdict

from ensemble.aggregator import aggregate, majority_label, mean_confidence, tally_votes
from ensemble.errors import QuorumError


def _verdicts(*pairs: tuple[str, str, float]) -> dict[str, ModelVerdict]:
    """Build an ordered verdict mapping from ``(model, label, confidence)``."""
    return {
        model: ModelVerdict(label=label, confidence=confidence)
        for model, label, confidence in pairs
    }


class TestMajorityVote:

    def test_unanimous(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.9),
            ("svm", "billing", 0.8),
            ("knn", "billing", 0.7),
        ))
        assert result.label == "billing"
        assert result.confidence == pytest.approx(0.8)
        assert result.votes == {"billing": 3}

    def test_two_one_split_uses_mean_of_all_three(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "shipping", 0.3),
            ("svm", "billing", 0.9),
            ("knn", "billing", 0.6),
        ))
        assert result.label == "billing"
        assert result.confidence == pytest.approx(0.6)
        assert result.votes == {"shipping": 1, "billing": 2}

    def test_three_way_tie_picks_first_in_query_order(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.9),
            ("svm", "shipping", 0.9),
            ("knn", "returns", 0.9),
        ))
        assert result.label == "billing"
        assert result.votes == {"billing": 1, "shipping": 1, "returns": 1}

    def test_three_way_tie_follows_query_order_not_alphabet(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "returns", 0.9),
            ("svm", "billing", 0.9),
            ("knn", "shipping", 0.9),
        ))
        assert result.label == "returns"

    def test_two_two_tie_picks_label_voted_first(self) -> None:
        result = aggregate(_verdicts(
            ("a", "shipping", 0.8),
            ("b", "billing", 0.8),
            ("c", "billing", 0.8),
            ("d", "shipping", 0.8),
        ))
        assert result.label == "shipping"

    def test_tie_break_ignores_confidence(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.6),
            ("svm", "shipping", 1.0),
        ))
        assert result.label == "billing"

    def test_single_verdict(self) -> None:
        result = aggregate(_verdicts(("svm", "returns", 0.77)))
        assert result.label == "returns"
        assert result.confidence == pytest.approx(0.77)
        assert result.votes == {"returns": 1}

    def test_single_verdict_still_abstains(self) -> None:
        result = aggregate(_verdicts(("svm", "returns", 0.2)))
        assert result.label == ABSTAIN_LABEL

    def test_tally_sums_to_model_count(self) -> None:
        verdicts = _verdicts(
            ("logistic_regression", "billing", 0.5),
            ("svm", "shipping", 0.5),
            ("knn", "billing", 0.5),
        )
        assert sum(aggregate(verdicts).votes.values()) == len(verdicts)


class TestThreshold:

    def test_below_threshold_abstains_and_reports_mean(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.4),
            ("svm", "billing", 0.4),
            ("knn", "billing", 0.4),
        ), threshold=0.5)
        assert result.label == ABSTAIN_LABEL
        assert result.confidence == pytest.approx(0.4)
        assert result.abstained is True
        assert result.votes == {"billing": 3}

    def test_threshold_is_inclusive(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.5),
            ("svm", "billing", 0.5),
            ("knn", "shipping", 0.5),
        ), threshold=0.5)
        assert result.label == "billing"
        assert result.confidence == 0.5
        assert result.abstained is False

    def test_zero_threshold_always_accepts(self) -> None:
        result = aggregate(_verdicts(
            ("logistic_regression", "billing", 0.0),
            ("svm", "billing", 0.0),
        ), threshold=0.0)
        assert result.label == "billing"

    def test_full_threshold_requires_full_confidence(self) -> None:
        confident = aggregate(_verdicts(
            ("logistic_regression", "billing", 1.0),
            ("svm", "billing", 1.0),
            ("knn", "billing", 1.0),
        ), threshold=1.0)
        assert confident.label == "billing"

        hesitant = aggregate(_verdicts(
            ("logistic_regression", "billing", 1.0),
            ("svm", "billing", 1.0),
            ("knn", "billing", 0.99),
        ), threshold=1.0)
        assert hesitant.label == ABSTAIN_LABEL

    def test_default_threshold(self) -> None:
        result = aggregate(_verdicts(("svm", "billing", 0.49)))
        assert result.threshold == 0.5
        assert result.label == ABSTAIN_LABEL

    @pytest.mark.parametrize("threshold", [-0.1, 1.01, float("nan")])
    def test_invalid_threshold(self, threshold: float) -> None:
        with pytest.raises(ValueError, match="threshold"):
            aggregate(_verdicts(("svm", "billing", 0.9)), threshold=threshold)


class TestQuorum:

    def test_zero_verdicts_raises(self) -> None:
        with pytest.raises(QuorumError):
            aggregate({})

    def test_missing_models_recorded(self) -> None:
        result = aggregate(
            _verdicts(("logistic_regression", "billing", 0.9), ("svm", "billing", 0.9)),
            missing_models=["knn"],
        )
        assert result.missing_models == ["knn"]


class TestResultShape:

    def test_verdicts_kept_in_query_order(self) -> None:
        verdicts = _verdicts(
            ("logistic_regression", "billing", 0.9),
            ("svm", "shipping", 0.8),
            ("knn", "returns", 0.7),
        )
        assert list(aggregate(verdicts).verdicts) == ["logistic_regression", "svm", "knn"]

    def test_idempotent(self) -> None:
        verdicts = _verdicts(
            ("logistic_regression", "billing", 0.91),
            ("svm", "shipping", 0.42),
            ("knn", "billing", 0.63),
        )
        first = aggregate(verdicts, 0.6)
        second = aggregate(verdicts, 0.6)
        assert first.model_dump_json() == second.model_dump_json()

    def test_input_not_mutated(self) -> None:
        verdicts = _verdicts(("svm", "billing", 0.9))
        aggregate(verdicts)
        assert verdicts == _verdicts(("svm", "billing", 0.9))


class TestHelpers:

    def test_tally_votes_first_vote_order(self) -> None:
        votes = tally_votes(_verdicts(("a", "x", 1.0), ("b", "y", 1.0), ("c", "x", 1.0)))
        assert list(votes.items()) == [("x", 2), ("y", 1)]

    def test_majority_label_first_maximum(self) -> None:
        assert majority_label({"x": 1, "y": 2, "z": 2}) == "y"

    def test_mean_confidence_stays_within_inputs(self) -> None:
        verdicts = _verdicts(("a", "x", 0.1), ("b", "x", 0.1), ("c", "x", 0.1))
        assert mean_confidence(verdicts) == 0.1
