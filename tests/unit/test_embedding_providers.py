"""Unit tests for embedding provider adapters: OpenAI-compatible, Ollama."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from docqa.config.settings import Settings
from docqa.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docqa.utils.errors import EmbeddingFailedError, ProviderTimeoutError, RateLimitError

_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "text-embedding-3-small",
        "ollama_base_url": "http://localhost:11434",
        "embedding_dimension": 768,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _response(*vectors: list[float]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=12)
    return response


def _rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", _EMBEDDINGS_URL)
    return openai.RateLimitError(
        "slow down", response=httpx.Response(429, request=request), body=None
    )


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_provider_name(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).get_provider_name() == "openai_embedding"

    def test_provider_name_with_custom_base_url(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_base_url="https://api.together.xyz/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_is_available_depends_on_key(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).is_available() is True
        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    def test_dimension_follows_settings_for_v3_models(self) -> None:
        assert OpenAIEmbeddingProvider(_settings(embedding_dimension=512)).get_dimension() == 512

    def test_dimension_for_fixed_size_model(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_embedding_model="text-embedding-ada-002"))
        assert provider.get_dimension() == 1536

    async def test_embed_requests_configured_dimensions(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_response([0.1] * 768, [0.2] * 768))

        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            result = await provider.embed(["clause one", "clause two"])

        assert len(result) == 2
        kwargs = mock_client.embeddings.create.await_args.kwargs
        assert kwargs["model"] == "text-embedding-3-small"
        assert kwargs["dimensions"] == 768
        assert kwargs["input"] == ["clause one", "clause two"]

    async def test_embed_single(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_response([0.3] * 768))

        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            result = await OpenAIEmbeddingProvider(_settings()).embed_single("question")

        assert result == [0.3] * 768

    async def test_empty_input(self) -> None:
        assert await OpenAIEmbeddingProvider(_settings()).embed([]) == []

    async def test_rate_limit_mapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_rate_limit_error())

        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(RateLimitError):
                await provider.embed(["x"])

    async def test_timeout_mapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=httpx.Request("POST", _EMBEDDINGS_URL))
        )

        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(ProviderTimeoutError):
                await provider.embed(["x"])

    async def test_api_error_mapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="bad request", request=MagicMock(), body=None)
        )

        with patch(
            "docqa.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(EmbeddingFailedError):
                await provider.embed(["x"])


# ======================================================================
# Ollama Embedding Provider
# ======================================================================


class TestOllamaEmbeddingProvider:
    def test_provider_name(self) -> None:
        assert OllamaEmbeddingProvider(_settings()).get_provider_name() == "ollama_embedding"

    def test_dimension_for_nomic(self) -> None:
        assert OllamaEmbeddingProvider(_settings()).get_dimension() == 768

    def test_is_available_when_server_answers(self) -> None:
        with patch(
            "docqa.providers.embedding.ollama_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ):
            assert OllamaEmbeddingProvider(_settings()).is_available() is True

    def test_is_unavailable_when_server_down(self) -> None:
        with patch(
            "docqa.providers.embedding.ollama_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            assert OllamaEmbeddingProvider(_settings()).is_available() is False

    async def test_embed_uses_configured_model(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(return_value=_response([0.5] * 768))

        with patch(
            "docqa.providers.embedding.ollama_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ) as mock_cls:
            provider = OllamaEmbeddingProvider(_settings())
            result = await provider.embed(["text"])

        assert result == [[0.5] * 768]
        assert mock_cls.call_args.kwargs["base_url"] == "http://localhost:11434/v1"
        assert mock_client.embeddings.create.await_args.kwargs["model"] == "nomic-embed-text"

    async def test_api_error_mapped(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(
            side_effect=openai.APIError(message="model not found", request=MagicMock(), body=None)
        )

        with patch(
            "docqa.providers.embedding.ollama_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OllamaEmbeddingProvider(_settings())
            with pytest.raises(EmbeddingFailedError):
                await provider.embed(["x"])
