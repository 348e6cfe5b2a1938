"""
Per-model output models for the intent ensemble.

Defines RawModelOutput (what a model runner returns before label
resolution) and ModelVerdict (a model's resolved label and confidence
for one request).
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, field_validator

# float32 probabilities may exceed 1.0 by rounding; anything further is not a probability.
PROBABILITY_TOLERANCE = 1e-6


class RawModelOutput(BaseModel):
    """Normalised output of a single model runner.

    Every runner adapter converts its backend-specific output into this
    shape, so the aggregator never sees backend field names.

    Attributes:
        label_code: Discrete class code predicted by the model.
        probabilities: Optional probability distribution over classes,
            one entry per class.
    """

    model_config = {"frozen": True}

    label_code: int | str = Field(..., description="Predicted class code.")
    probabilities: list[float] | None = Field(
        default=None,
        description="Per-class probabilities, if the model exposes them.",
    )

    @field_validator("probabilities")
    @classmethod
    def _probabilities_in_range(cls, value: list[float] | None) -> list[float] | None:
        if value is None:
            return value
        for p in value:
            if not math.isfinite(p) or p < 0.0 or p > 1.0 + PROBABILITY_TOLERANCE:
                raise ValueError(f"invalid probability {p!r}")
        return value


class ModelVerdict(BaseModel):
    """A single model's resolved verdict for one request.

    Attributes:
        label: Canonical intent label.
        confidence: Model confidence in the label (0.0–1.0).
    """

    model_config = {"frozen": True}

    label: str = Field(..., min_length=1, description="Canonical intent label.")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Model confidence.")
