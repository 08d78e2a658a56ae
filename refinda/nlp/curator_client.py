"""Client for denim generation and taste embeddings via the OpenAI API."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Collection, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from refinda.config.settings import Settings, get_settings
from refinda.errors import UpstreamError
from refinda.recommender.types import GeneratedRecommendation, GeneratedRecommendations

logger = logging.getLogger(__name__)


class CuratorClient:
    """Thin wrapper over ``AsyncOpenAI`` that validates everything it returns."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        if not settings.openai_api_key:
            raise RuntimeError("OpenAI API key is not configured.")

        self._settings = settings
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url.rstrip("/"),
            timeout=settings.request_timeout,
        )

    @property
    def model(self) -> str:
        return self._settings.openai_model

    @property
    def embed_model(self) -> str:
        return self._settings.openai_embed_model

    async def generate_recommendations(
        self,
        messages: Sequence[dict[str, str]],
        schema: dict[str, Any],
        anchor_ids: Collection[str],
    ) -> list[GeneratedRecommendation]:
        """Ask the chat model for anchored picks and validate them."""

        try:
            response = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=list(messages),
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "denim_recommendations", "strict": True, "schema": schema},
                },
            )
        except OpenAIError as exc:
            raise UpstreamError(f"OpenAI chat completion failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise UpstreamError("Model returned no text content.")
        return self.parse_recommendations(content, anchor_ids)

    @staticmethod
    def parse_recommendations(content: str, anchor_ids: Collection[str]) -> list[GeneratedRecommendation]:
        """Decode and validate model output; raise ``UpstreamError`` on any mismatch."""

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Model returned non-JSON output: %.200s", content)
            raise UpstreamError("Model returned non-JSON output.") from exc

        try:
            parsed = GeneratedRecommendations.model_validate(payload, context={"anchor_ids": set(anchor_ids)})
        except ValidationError as exc:
            raise UpstreamError(f"Model output failed validation: {exc.errors()[0]['msg']}") from exc

        if not parsed.recommendations:
            raise UpstreamError("Model returned zero recommendations.")
        return parsed.recommendations

    async def embed_text(self, text: str) -> list[float]:
        """Return a finite embedding of the configured dimensionality."""

        try:
            response = await self._client.embeddings.create(model=self._settings.openai_embed_model, input=text)
        except OpenAIError as exc:
            raise UpstreamError(f"OpenAI embeddings failed: {exc}") from exc

        embedding = [float(value) for value in response.data[0].embedding] if response.data else []
        expected = self._settings.embedding_dimensions
        if len(embedding) != expected:
            raise UpstreamError(f"Unexpected embedding length {len(embedding)}, expected {expected}.")
        if not all(math.isfinite(value) for value in embedding):
            raise UpstreamError("Embedding contained non-finite numbers.")
        return embedding

    async def ping(self) -> bool:
        """Return ``True`` if the upstream service responds to a model listing call."""

        models = await self._client.models.list()
        return bool(models.data)

    async def close(self) -> None:
        """Release HTTP resources."""

        await self._client.close()
