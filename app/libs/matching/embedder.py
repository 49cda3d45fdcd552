import asyncio
import math
from typing import List, Optional

from loguru import logger
from openai import AsyncOpenAI

from app.core.config import settings
from app.libs.matching.exceptions import EmbeddingProviderError
from app.libs.matching.models import Embedded, EmbeddingResult, Unavailable
from app.utils.circuit_breaker import CircuitBreaker


class TextEmbedder:
    """Converts text into embeddings through an OpenAI-compatible endpoint."""

    def __init__(
        self,
        model: str = settings.embedding_model,
        api_key: str = settings.openai_api_key,
        base_url: str = settings.embedding_base_url,
        dimensions: int = settings.embedding_dimensions,
        max_input_chars: int = settings.embedding_max_input_chars,
        timeout: float = settings.embedding_timeout_seconds,
        client: Optional[AsyncOpenAI] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Initialize the TextEmbedder.
        Args:
            model: The embedding model name
            api_key: Provider API key
            base_url: The base URL of the provider API
            dimensions: Expected vector length; other lengths are rejected
            max_input_chars: Input is truncated to this many characters
            timeout: Seconds to wait for the provider before giving up
            client: Pre-built client, mainly for tests
            circuit_breaker: Breaker guarding the provider
        """
        self.model = model
        self.dimensions = dimensions
        self.max_input_chars = max_input_chars
        self.timeout = timeout

        if client is None:
            if not api_key:
                raise ValueError("API key must be provided or set as environment variable")
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.client = client

        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            name="embedding-provider",
            failure_threshold=settings.embedding_breaker_failure_threshold,
            reset_timeout=settings.embedding_breaker_reset_timeout,
        )

    def _prepare(self, text: str) -> str:
        return (text or "").strip()[: self.max_input_chars]

    async def embed_raw(self, text: str) -> List[float]:
        """
        Call the provider once and validate the vector.

        Raises:
            EmbeddingProviderError: on timeout, transport error or malformed response
        """
        payload = self._prepare(text)
        if not payload:
            raise EmbeddingProviderError("empty input")

        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(
                    model=self.model,
                    input=payload,
                    encoding_format="float",
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingProviderError(f"timed out after {self.timeout}s") from e
        except Exception as e:
            raise EmbeddingProviderError(f"Failed to generate embeddings: {str(e)}") from e

        data = getattr(response, "data", None)
        if not data:
            raise EmbeddingProviderError("response contained no embedding data")

        vector = getattr(data[0], "embedding", None)
        if not isinstance(vector, list):
            raise EmbeddingProviderError("embedding is not a list")
        if len(vector) != self.dimensions:
            raise EmbeddingProviderError(
                f"expected {self.dimensions} dimensions, got {len(vector)}"
            )
        if not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
            for v in vector
        ):
            raise EmbeddingProviderError("embedding contains non-numeric values")

        return [float(v) for v in vector]

    async def embed(self, text: str) -> EmbeddingResult:
        """
        Embed text, never raising.

        Any provider failure is logged and reported as ``Unavailable`` so a
        single bad call cannot abort a whole search.
        """
        if not self._prepare(text):
            return Unavailable("empty input", self.dimensions)

        if not await self.circuit_breaker.is_allowed():
            logger.warning("Embedding provider circuit open, skipping call", model=self.model)
            return Unavailable("circuit open", self.dimensions)

        try:
            vector = await self.embed_raw(text)
        except EmbeddingProviderError as e:
            await self.circuit_breaker.record_failure()
            logger.warning(
                f"Embedding provider failure: {str(e)}",
                model=self.model,
                text_length=len(text),
            )
            return Unavailable(str(e), self.dimensions)

        await self.circuit_breaker.record_success()
        return Embedded(vector)
