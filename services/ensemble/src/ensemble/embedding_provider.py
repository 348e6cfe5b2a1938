"""
Embedding providers for the intent ensemble.

Defines the EmbeddingProvider interface and an HTTP implementation that
calls a text-embedding service (Titan-style request/response JSON)
through a single ``httpx.AsyncClient`` created at startup.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from ensemble.errors import ProviderError

logger = structlog.get_logger()


class EmbeddingProvider(ABC):
    """Turns raw text into a fixed-length embedding vector."""

    @abstractmethod
    async def get_embedding(self, text: str) -> list[float]:
        """Return the embedding for *text*.

        Raises:
            ProviderError: If the upstream service is unreachable or
                returns malformed data.
        """
        ...  # pragma: no cover

    async def close(self) -> None:
        """Release any resources held by the provider."""


class HttpEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by an HTTP embedding endpoint.

    Sends ``{"inputText": ..., "modelId": ...}`` and expects a JSON body
    with an ``embedding`` array of numbers.

    Args:
        url: Embedding endpoint URL.
        model_id: Embedding model identifier forwarded upstream.
        api_key: Optional bearer token.
        expected_dim: Reject embeddings of any other length.
        timeout_s: Request timeout in seconds.
        client: Pre-built client (tests); the provider then does not own it.
    """

    def __init__(
        self,
        url: str,
        *,
        model_id: str = "amazon.titan-embed-text-v2:0",
        api_key: str = "",
        expected_dim: int | None = None,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._model_id = model_id
        self._expected_dim = expected_dim
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def get_embedding(self, text: str) -> list[float]:
        """POST *text* to the embedding service and validate the vector."""
        if not text or not text.strip():
            raise ProviderError("cannot embed empty text")

        payload = {"inputText": text, "modelId": self._model_id}
        try:
            resp = await self._client.post(self._url, json=payload, headers=self._headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderError(
                f"embedding service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"embedding service unreachable: {exc}") from exc

        try:
            body: Any = resp.json()
        except ValueError as exc:
            raise ProviderError("embedding service returned a non-JSON body") from exc

        embedding = self._parse(body)
        logger.debug("embedding_received", dim=len(embedding), model_id=self._model_id)
        return embedding

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ── internal helpers ──

    def _parse(self, body: Any) -> list[float]:
        """Extract and validate the ``embedding`` array from *body*."""
        if not isinstance(body, dict) or "embedding" not in body:
            raise ProviderError("embedding response has no 'embedding' field")
        raw = body["embedding"]
        if not isinstance(raw, list) or not raw:
            raise ProviderError("embedding response 'embedding' must be a non-empty list")

        vector: list[float] = []
        for value in raw:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ProviderError(f"embedding contains a non-numeric value: {value!r}")
            if not math.isfinite(value):
                raise ProviderError("embedding contains a non-finite value")
            vector.append(float(value))

        if self._expected_dim is not None and len(vector) != self._expected_dim:
            raise ProviderError(
                f"embedding dimension {len(vector)} does not match expected {self._expected_dim}"
            )
        return vector
