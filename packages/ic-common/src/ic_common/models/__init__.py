"""
Shared Pydantic data models for the intent ensemble.

This package contains the per-model output and verdict models and the
ensemble result returned to callers.
"""

from ic_common.models.result import ABSTAIN_LABEL, EnsembleResult
from ic_common.models.verdict import PROBABILITY_TOLERANCE, ModelVerdict, RawModelOutput

__all__ = [
    "ABSTAIN_LABEL",
    "EnsembleResult",
    "ModelVerdict",
    "PROBABILITY_TOLERANCE",
    "RawModelOutput",
]
