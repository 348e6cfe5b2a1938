"""
Ensemble service entry point.

Builds the classifier from settings (label mapping, one runner per
configured model, embedding provider), loads every model once inside
the application lifespan, and exposes classification, health and
metrics endpoints.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from ic_common.config import Settings, get_settings
from ic_common.logging import configure_logging

from ensemble.classifier import IntentClassifier
from ensemble.embedding_provider import HttpEmbeddingProvider
from ensemble.errors import ClassificationError
from ensemble.health import router as health_router
from ensemble.label_resolver import LabelResolver
from ensemble.middleware import RequestContextMiddleware
from ensemble.routes import classification_error_handler
from ensemble.routes import router as classify_router
from ensemble.runner_base import ModelRunner
from ensemble.runner_registry import get_runner_builder, list_runners, register_runner
from ensemble.runners.onnx_runner import OnnxModelRunner

logger = structlog.get_logger()


def build_onnx_runner(settings: Settings, name: str) -> OnnxModelRunner:
    """ONNX runner for the artifact of model *name* under ``model_dir``."""
    return OnnxModelRunner(
        name,
        settings.model_path(name),
        input_name=settings.onnx_input_name,
        full_confidence_fallback=settings.full_confidence_fallback,
    )


def _register_default_runners() -> None:
    """Register built-in runner backends."""
    register_runner("onnx", build_onnx_runner)


def build_runner(settings: Settings, name: str) -> ModelRunner:
    """Build model *name* with the configured runner backend.

    Raises:
        KeyError: If ``settings.runner_backend`` is not registered.
    """
    return get_runner_builder(settings.runner_backend)(settings, name)


def build_classifier(settings: Settings) -> IntentClassifier:
    """Wire the classifier and its collaborators from *settings*.

    Raises:
        ConfigurationError: If the label mapping cannot be loaded.
        KeyError: If the runner backend is not registered.
    """
    resolver = LabelResolver.from_file(settings.label_mapping_path)
    runners = [build_runner(settings, name) for name in settings.model_names]
    provider = HttpEmbeddingProvider(
        settings.embedding_url,
        model_id=settings.embedding_model_id,
        api_key=settings.embedding_api_key,
        expected_dim=settings.embedding_dim,
        timeout_s=settings.embedding_timeout_s,
    )
    return IntentClassifier(
        provider,
        runners,
        resolver,
        default_threshold=settings.default_threshold,
        inference_timeout_s=settings.inference_timeout_s,
        partial_quorum=settings.partial_quorum,
        min_quorum=settings.min_quorum,
    )


def create_app(classifier: IntentClassifier | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        classifier: Pre-built classifier (tests). When given it is used
            as-is: the lifespan neither loads nor closes it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if classifier is not None:
            app.state.classifier = classifier
            yield
            return

        settings = get_settings()
        configure_logging(settings.log_level, settings.log_json)
        _register_default_runners()

        # ── startup ──
        built = build_classifier(settings)
        try:
            await built.load()
            app.state.classifier = built
            logger.info(
                "ensemble_startup",
                models=settings.model_names,
                backend=settings.runner_backend,
                backends=list_runners(),
                partial_quorum=settings.partial_quorum,
            )
            yield
        finally:
            # ── shutdown ──
            logger.info("ensemble_shutdown")
            app.state.classifier = None
            await built.close()

    app = FastAPI(title="Intent Ensemble Service", lifespan=lifespan)
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(ClassificationError, classification_error_handler)  # type: ignore[arg-type]
    app.include_router(health_router)
    app.include_router(classify_router)

    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)
    return app


app = create_app()


def main() -> None:
    """Run the ensemble service with Uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "ensemble.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
