"""Tests for embedding and completion providers against mocked SDK clients."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from embeddings import (
    LocalEmbeddingProvider,
    OpenAIEmbeddingProvider,
    is_degenerate,
    load_embedding_provider,
)
from llm.providers import load_provider
from llm.providers.anthropic import AnthropicProvider
from llm.providers.openai import OpenAIProvider


# ═══════════════════════════════════════════════════════════════════════════
#  EMBEDDINGS
# ═══════════════════════════════════════════════════════════════════════════

class TestOpenAIEmbeddingProvider:

    def test_request_shape(self):
        client = MagicMock()
        client.embeddings.create.return_value = SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])]
        )
        provider = OpenAIEmbeddingProvider(api_key="k", client=client)

        assert provider.embed("hello") == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_called_once_with(
            encoding_format="float", input="hello", model="text-embedding-ada-002",
        )

    def test_custom_model(self):
        client = MagicMock()
        client.embeddings.create.return_value = SimpleNamespace(data=[SimpleNamespace(embedding=[1.0])])
        OpenAIEmbeddingProvider(api_key="k", model="text-embedding-3-small", client=client).embed("x")
        assert client.embeddings.create.call_args.kwargs["model"] == "text-embedding-3-small"

    def test_no_data_returns_empty(self):
        client = MagicMock()
        client.embeddings.create.return_value = SimpleNamespace(data=[])
        assert OpenAIEmbeddingProvider(api_key="k", client=client).embed("x") == []

    def test_sdk_error_propagates(self):
        client = MagicMock()
        client.embeddings.create.side_effect = RuntimeError("rate limited")
        with pytest.raises(RuntimeError):
            OpenAIEmbeddingProvider(api_key="k", client=client).embed("x")


class TestLocalEmbeddingProvider:

    def test_model_not_loaded_until_first_embed(self):
        provider = LocalEmbeddingProvider("sentence-transformers/all-MiniLM-L6-v2")
        assert provider._model is None
        assert provider.name == "local"


class TestIsDegenerate:

    @pytest.mark.parametrize("vector", [None, [], [float("nan"), 1.0], [float("inf")], [[1.0], [2.0]], [0.0, 0.0, 0.0]])
    def test_degenerate(self, vector):
        assert is_degenerate(vector)

    def test_normal_vector(self):
        assert not is_degenerate([0.1, -0.2, 0.3])


class TestLoadEmbeddingProvider:

    def test_local(self):
        settings = SimpleNamespace(EMBEDDING_PROVIDER="LOCAL", LOCAL_EMBEDDING_MODEL="m")
        assert load_embedding_provider(settings).name == "local"

    def test_unknown(self):
        with pytest.raises(ValueError):
            load_embedding_provider(SimpleNamespace(EMBEDDING_PROVIDER="cohere"))


# ═══════════════════════════════════════════════════════════════════════════
#  COMPLETIONS
# ═══════════════════════════════════════════════════════════════════════════

class TestOpenAIProvider:

    def test_single_user_message(self):
        client = MagicMock()
        client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(role="assistant", content="Rest."))]
        )
        reply = OpenAIProvider(api_key="k", client=client).complete("gpt-3.5-turbo-1106", "PROMPT")

        assert reply == {"role": "assistant", "content": "Rest."}
        client.chat.completions.create.assert_called_once_with(
            model="gpt-3.5-turbo-1106",
            messages=[{"role": "user", "content": "PROMPT"}],
        )

    def test_sdk_error_propagates(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = TimeoutError()
        with pytest.raises(TimeoutError):
            OpenAIProvider(api_key="k", client=client).complete("m", "p")


class TestAnthropicProvider:

    def test_joins_text_blocks(self):
        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(
            role="assistant",
            content=[
                SimpleNamespace(type="text", text="Hello "),
                SimpleNamespace(type="tool_use", text="ignored"),
                SimpleNamespace(type="text", text="there."),
            ],
        )
        reply = AnthropicProvider(api_key="k", max_tokens=256, client=client).complete("claude-x", "PROMPT")

        assert reply == {"role": "assistant", "content": "Hello there."}
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 256
        assert kwargs["messages"] == [{"role": "user", "content": "PROMPT"}]


class TestLoadProvider:

    def test_unknown(self):
        with pytest.raises(ValueError):
            load_provider(SimpleNamespace(LLM_PROVIDER="cerebras"))
