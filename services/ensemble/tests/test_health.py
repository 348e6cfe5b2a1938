"""
Tests for the ensemble health check endpoint.

Validates the /health route reports service status and per-model readiness.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from ensemble.classifier import IntentClassifier
from ensemble.health import router
from ensemble.label_resolver import LabelResolver
from fakes import FakeProvider, FakeRunner


def _make_app(classifier: IntentClassifier | None = None) -> FastAPI:
    """Minimal FastAPI app with just the health router."""
    app = FastAPI()
    app.include_router(router)
    app.state.classifier = classifier
    return app


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_no_classifier_degraded(self) -> None:
        """Health is 'degraded' before the classifier is created."""
        client = TestClient(_make_app())
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "degraded"
        assert data["service"] == "ensemble"
        assert data["models"] == {}

    def test_all_models_ready(self, resolver: LabelResolver) -> None:
        """Health is 'ok' when every model is loaded."""
        runners = [FakeRunner("logistic_regression"), FakeRunner("svm"), FakeRunner("knn")]
        client = TestClient(_make_app(IntentClassifier(FakeProvider(), runners, resolver)))
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["models"] == {"logistic_regression": True, "svm": True, "knn": True}

    def test_one_model_not_ready(self, resolver: LabelResolver) -> None:
        """Health is 'degraded' if any model is not loaded."""
        runners = [FakeRunner("svm"), FakeRunner("knn", loaded=False)]
        client = TestClient(_make_app(IntentClassifier(FakeProvider(), runners, resolver)))
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert data["models"]["knn"] is False
