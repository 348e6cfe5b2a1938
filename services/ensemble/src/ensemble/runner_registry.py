"""
Model runner backend registry.

Maps a backend identifier (``IC_RUNNER_BACKEND``) to a builder that
constructs one runner per configured model from the service settings.
The service registers its built-in backends at startup; additional
backends only need a builder, not a particular constructor signature.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from ic_common.config import Settings

from ensemble.runner_base import ModelRunner

logger = structlog.get_logger()

RunnerBuilder = Callable[[Settings, str], ModelRunner]

_BUILDERS: dict[str, RunnerBuilder] = {}


def register_runner(backend: str, builder: RunnerBuilder) -> None:
    """Register *builder* as the constructor for *backend* runners.

    Args:
        backend: Backend identifier (e.g. ``"onnx"``).
        builder: Called as ``builder(settings, model_name)``.

    Raises:
        TypeError: If *builder* is not callable.
    """
    if not callable(builder):
        raise TypeError(f"runner builder for '{backend}' must be callable, got {builder!r}")
    _BUILDERS[backend] = builder
    logger.debug("runner_backend_registered", backend=backend)


def get_runner_builder(backend: str) -> RunnerBuilder:
    """Return the builder registered for *backend*.

    Raises:
        KeyError: If no builder is registered under *backend*.
    """
    try:
        return _BUILDERS[backend]
    except KeyError:
        raise KeyError(
            f"Unknown runner backend '{backend}'. Available: {list_runners()}"
        ) from None


def list_runners() -> list[str]:
    """Registered backend identifiers, in registration order."""
    return list(_BUILDERS)


def clear_registry() -> None:
    """Forget every registered backend."""
    _BUILDERS.clear()
