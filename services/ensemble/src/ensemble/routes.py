"""
Classification endpoint for the ensemble service.

``POST /classify`` runs the full pipeline (embedding, model fan-out,
aggregation) for one query using the classifier stored on
``app.state`` during startup.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ic_common.models import EnsembleResult

from ensemble.classifier import IntentClassifier
from ensemble.errors import (
    ClassificationError,
    ConfigurationError,
    InferenceError,
    ProviderError,
    QuorumError,
)
from ensemble.schemas import ClassifyRequest, ErrorResponse

router = APIRouter()

_ERROR_STATUS: dict[type[ClassificationError], int] = {
    ProviderError: status.HTTP_502_BAD_GATEWAY,
    InferenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
    QuorumError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_status(exc: ClassificationError) -> int:
    """HTTP status code for a classification failure."""
    for cls, code in _ERROR_STATUS.items():
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def classification_error_handler(
    request: Request, exc: ClassificationError,
) -> JSONResponse:
    """Render a :class:`ClassificationError` as an :class:`ErrorResponse`."""
    body = ErrorResponse(**exc.to_dict())
    return JSONResponse(
        status_code=error_status(exc),
        content=body.model_dump(exclude_unset=True),
    )


def get_classifier(request: Request) -> IntentClassifier:
    """Return the classifier created at startup."""
    classifier = getattr(request.app.state, "classifier", None)
    if classifier is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="classifier is not initialised",
        )
    return classifier


@router.post(
    "/classify",
    response_model=EnsembleResult,
    responses={
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def classify(
    body: ClassifyRequest,
    classifier: IntentClassifier = Depends(get_classifier),
) -> EnsembleResult:
    """Classify ``body.text`` into an intent label."""
    return await classifier.classify(body.text, body.threshold)
