"""
Environment-based configuration management for the intent ensemble.

Uses pydantic-settings to load configuration values from environment
variables and .env files. The service imports its settings from this
module so that model locations, embedding endpoint, quorum policy and
thresholds are handled consistently.

All environment variables are prefixed with ``IC_`` to avoid collisions.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL_NAMES = ["logistic_regression", "svm", "knn"]


class Settings(BaseSettings):
    """Central configuration loaded from ``IC_``-prefixed environment variables.

    Attributes:
        model_dir: Directory holding the trained model artifacts.
        model_names: Base models to query, in query order.
        model_file_template: File name pattern for a model artifact.
        runner_backend: Registered runner backend used for every model.
        onnx_input_name: Name of the ONNX graph input fed with the embedding.
        full_confidence_fallback: Treat a model with no probability output
            as fully confident in its label.
        label_mapping_path: JSON file mapping class codes to intent labels.
        embedding_url: HTTP endpoint of the embedding service.
        embedding_api_key: Bearer token for the embedding service.
        embedding_model_id: Embedding model identifier sent upstream.
        embedding_dim: Expected embedding dimensionality.
        embedding_timeout_s: HTTP timeout for embedding requests.
        inference_timeout_s: Deadline for all model runners to respond.
        default_threshold: Abstention threshold when callers pass none.
        partial_quorum: Allow aggregation with fewer than all models.
        min_quorum: Minimum verdicts required in partial-quorum mode.
        api_host: Bind address for the HTTP service.
        api_port: Bind port for the HTTP service.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_json: Render logs as JSON (``False`` = console renderer).
    """

    model_config = SettingsConfigDict(
        env_prefix="IC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # ── Models ──
    model_dir: Path = Field(default=Path("models"), description="Model artifact directory.")
    model_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MODEL_NAMES),
        min_length=1,
        description="Base models to query, in query order.",
    )
    model_file_template: str = Field(
        default="intent_classifier_{name}.onnx",
        description="Artifact file name pattern; ``{name}`` is the model name.",
    )
    runner_backend: str = Field(default="onnx", description="Runner backend identifier.")
    onnx_input_name: str = Field(default="float_input", description="ONNX graph input name.")
    full_confidence_fallback: bool = Field(
        default=True,
        description="Use confidence 1.0 when a model exposes no probabilities.",
    )

    # ── Labels ──
    label_mapping_path: Path = Field(
        default=Path("models/label_mapping.json"),
        description="JSON object mapping class codes to intent labels.",
    )

    # ── Embeddings ──
    embedding_url: str = Field(
        default="http://localhost:8080/embeddings",
        description="Embedding service endpoint.",
    )
    embedding_api_key: str = Field(default="", description="Embedding service bearer token.")
    embedding_model_id: str = Field(
        default="amazon.titan-embed-text-v2:0",
        description="Embedding model identifier.",
    )
    embedding_dim: int = Field(default=1024, ge=1, description="Expected embedding size.")
    embedding_timeout_s: float = Field(default=10.0, gt=0, description="Embedding HTTP timeout.")

    # ── Ensemble ──
    inference_timeout_s: float = Field(
        default=5.0,
        gt=0,
        description="Deadline for all model runners to respond.",
    )
    default_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Abstention threshold applied when callers pass none.",
    )
    partial_quorum: bool = Field(
        default=False,
        description="Aggregate over the models that answered instead of failing.",
    )
    min_quorum: int = Field(
        default=2,
        ge=1,
        description="Minimum verdicts required when partial_quorum is enabled.",
    )

    # ── API ──
    api_host: str = Field(default="0.0.0.0", description="HTTP service bind address.")
    api_port: int = Field(default=8000, ge=1, le=65535, description="HTTP service bind port.")

    # ── Logging ──
    log_level: str = Field(default="INFO", description="Logging level.")
    log_json: bool = Field(default=True, description="Render logs as JSON.")

    @field_validator("model_file_template")
    @classmethod
    def _template_has_name(cls, value: str) -> str:
        if "{name}" not in value:
            raise ValueError("model_file_template must contain '{name}'")
        return value

    @field_validator("model_names")
    @classmethod
    def _unique_model_names(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("model_names must be unique")
        return value

    def model_path(self, name: str) -> Path:
        """Return the artifact path for model *name*."""
        return self.model_dir / self.model_file_template.format(name=name)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Returns:
        The global ``Settings`` instance.
    """
    return Settings()
