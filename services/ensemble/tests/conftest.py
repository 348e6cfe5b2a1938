"""Shared fixtures for ensemble service tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

# Make helpers in this directory importable from test files
# (needed with --import-mode=importlib).
# Use *append* (not insert-0) to avoid shadowing other conftests.
sys.path.append(str(Path(__file__).resolve().parent))

from ensemble.label_resolver import LabelResolver  # noqa: E402

LABEL_MAPPING = {
    "0": "greeting",
    "1": "billing",
    "2": "shipping",
    "3": "returns",
}

# Query order used by the production configuration.
MODEL_NAMES = ["logistic_regression", "svm", "knn"]


# ─── Fixtures ────────────────────────────────────────────────


@pytest.fixture()
def label_mapping() -> dict[str, str]:
    """Class-code to label table shared by the tests."""
    return dict(LABEL_MAPPING)


@pytest.fixture()
def resolver(label_mapping: dict[str, str]) -> LabelResolver:
    """A resolver over :data:`LABEL_MAPPING`."""
    return LabelResolver(label_mapping)


@pytest.fixture()
def mapping_file(tmp_path: Path, label_mapping: dict[str, str]) -> Path:
    """The label mapping written to a JSON file."""
    path = tmp_path / "label_mapping.json"
    path.write_text(json.dumps(label_mapping), encoding="utf-8")
    return path


@pytest.fixture()
def embedding() -> list[float]:
    """A small deterministic embedding."""
    return [0.1, 0.2, 0.3, 0.4]
