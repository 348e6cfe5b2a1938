"""Shared pytest fixtures for integration tests.

Provides a label mapping on disk and a mocked embedding service so the
whole service can run without network access or model artifacts.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

# Make helpers in this directory importable from test files
# (needed with --import-mode=importlib).
sys.path.append(str(Path(__file__).resolve().parent))

from sessions import EMBEDDING_DIM  # noqa: E402

LABEL_MAPPING = {"0": "greeting", "1": "billing", "2": "shipping", "3": "returns"}


@pytest.fixture()
def model_dir(tmp_path: Path) -> Path:
    """Directory holding the label mapping (model files are never read)."""
    (tmp_path / "label_mapping.json").write_text(json.dumps(LABEL_MAPPING), encoding="utf-8")
    return tmp_path


@pytest.fixture()
def embedding_requests() -> list[dict[str, Any]]:
    """JSON bodies received by the mocked embedding service."""
    return []


@pytest.fixture()
def embedding_transport(embedding_requests: list[dict[str, Any]]) -> httpx.MockTransport:
    """Embedding service answering every request with a fixed vector."""

    def handler(request: httpx.Request) -> httpx.Response:
        embedding_requests.append(json.loads(request.content))
        return httpx.Response(200, json={"embedding": [0.125] * EMBEDDING_DIM})

    return httpx.MockTransport(handler)
