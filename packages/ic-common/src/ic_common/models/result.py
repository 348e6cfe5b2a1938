"""
Ensemble result model for the intent ensemble.

Defines EnsembleResult: the per-model verdicts, the vote tally and the
final (label, confidence) pair produced by the aggregator.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ic_common.models.verdict import ModelVerdict

# Label emitted when aggregate confidence falls below the threshold.
ABSTAIN_LABEL = "others"


class EnsembleResult(BaseModel):
    """Final ensemble decision with the evidence it was built from.

    Attributes:
        verdicts: Per-model verdicts keyed by model name, in query order.
        label: Final label (the majority label, or ``"others"``).
        confidence: Unweighted mean of the per-model confidences.
        votes: Vote tally, label to count, in first-vote order.
        threshold: Abstention threshold that was applied.
        missing_models: Models dropped under partial quorum.
    """

    model_config = {"frozen": True}

    verdicts: dict[str, ModelVerdict] = Field(..., description="Per-model verdicts.")
    label: str = Field(..., description="Final ensemble label.")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Aggregate confidence.")
    votes: dict[str, int] = Field(..., description="Vote tally by label.")
    threshold: float = Field(..., ge=0.0, le=1.0, description="Applied threshold.")
    missing_models: list[str] = Field(
        default_factory=list,
        description="Models that did not contribute a verdict.",
    )

    @property
    def abstained(self) -> bool:
        """Whether the ensemble abstained because confidence was too low."""
        return self.confidence < self.threshold
