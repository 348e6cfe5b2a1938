"""
Label resolution for the intent ensemble.

Maps a model's raw class code to its canonical intent label using the
static mapping loaded once at startup from a JSON object of
string-encoded integer keys to label strings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import structlog

from ensemble.errors import ConfigurationError

logger = structlog.get_logger()


def _normalise_code(code: Any) -> str:
    """Return the mapping key for *code* (``3``, ``np.int64(3)`` and ``"3"`` -> ``"3"``)."""
    if isinstance(code, bool):
        raise TypeError("boolean label codes are not supported")
    if hasattr(code, "item") and not isinstance(code, (str, bytes)):
        code = code.item()  # numpy scalar
    if isinstance(code, bytes):
        code = code.decode("utf-8")
    if isinstance(code, float):
        if not code.is_integer():
            raise TypeError(f"non-integral label code {code!r}")
        code = int(code)
    if isinstance(code, (int, str)):
        return str(code).strip()
    raise TypeError(f"unsupported label code type {type(code).__name__}")


class LabelResolver:
    """Read-only class-code to intent-label table.

    The table is wrapped in a ``MappingProxyType`` so it can be shared
    across concurrent requests without locking.

    Args:
        mapping: Raw class code (as string) to canonical label.

    Raises:
        ConfigurationError: If *mapping* is empty or not str -> str.
    """

    def __init__(self, mapping: Mapping[str, str]) -> None:
        if not mapping:
            raise ConfigurationError("label mapping is empty", stage="startup")
        for key, value in mapping.items():
            if not isinstance(key, str) or not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"label mapping entry {key!r}: {value!r} is not a string pair",
                    stage="startup",
                )
        self._mapping: Mapping[str, str] = MappingProxyType(dict(mapping))

    @classmethod
    def from_file(cls, path: str | Path) -> LabelResolver:
        """Load the mapping from a JSON file.

        Args:
            path: Path to a JSON object such as ``{"0": "greeting", "1": "billing"}``.

        Raises:
            ConfigurationError: If the file is missing, unreadable, not
                JSON, or not an object of string pairs.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"label mapping not found: {path}", stage="startup") from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"label mapping {path} is unreadable: {exc}", stage="startup"
            ) from exc

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"label mapping {path} must be a JSON object, got {type(raw).__name__}",
                stage="startup",
            )
        resolver = cls(raw)
        logger.info("label_mapping_loaded", path=str(path), labels=len(resolver))
        return resolver

    def __len__(self) -> int:
        return len(self._mapping)

    @property
    def mapping(self) -> Mapping[str, str]:
        """The read-only code -> label table."""
        return self._mapping

    @property
    def labels(self) -> frozenset[str]:
        """Distinct canonical labels (the mapping's codomain)."""
        return frozenset(self._mapping.values())

    def resolve(self, code: Any, *, model: str | None = None) -> str:
        """Return the canonical label for a raw class *code*.

        Args:
            code: Raw class code from a model (int, numpy integer or str).
            model: Name of the model that produced *code*, for error context.

        Raises:
            ConfigurationError: If *code* is not convertible to a key or
                has no entry in the mapping.
        """
        try:
            key = _normalise_code(code)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"label code {code!r} from model '{model}' is not a valid key: {exc}",
                model=model,
                code=repr(code),
            ) from exc

        label = self._mapping.get(key)
        if label is None:
            raise ConfigurationError(
                f"label code '{key}' from model '{model}' has no entry in the label mapping",
                model=model,
                code=key,
            )
        return label
