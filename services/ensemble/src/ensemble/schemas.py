"""
Request and error schemas for the ensemble HTTP API.

The response body of ``POST /classify`` is the shared
:class:`ic_common.models.EnsembleResult`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ClassifyRequest(BaseModel):
    """Body of ``POST /classify``.

    Attributes:
        text: Query text to classify.
        threshold: Abstention threshold; the service default when omitted.
    """

    text: str = Field(..., min_length=1, description="Query text to classify.")
    threshold: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Abstention threshold (0.0–1.0).",
    )

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must contain non-whitespace characters")
        return value


class ErrorResponse(BaseModel):
    """Error body returned for classification failures.

    ``code`` and ``missing`` are present only for the errors that carry them.
    """

    error: str = Field(..., description="Error type.")
    stage: str = Field(..., description="Pipeline stage that failed.")
    model: str | None = Field(default=None, description="Model involved, if any.")
    detail: str = Field(..., description="Human-readable description.")
    code: str | None = Field(default=None, description="Unmapped label code, if any.")
    missing: list[str] | None = Field(
        default=None,
        description="Models that did not contribute a verdict, if any.",
    )
