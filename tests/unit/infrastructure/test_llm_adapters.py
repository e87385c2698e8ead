"""Tests for LLM adapters (Ollama, OpenAI-compatible)."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx
from ollama import ResponseError

from starwiki.domain.ports.config import OllamaConfig, OpenAICompatibleConfig
from starwiki.domain.ports.llm import LLMMessage
from starwiki.infrastructure.llm.ollama import DEFAULT_MODEL, OllamaAdapter
from starwiki.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter
from starwiki.infrastructure.resilience import CircuitOpenError, reset_all_breakers


class TestOllamaAdapter:
    """Tests for OllamaAdapter."""

    @pytest.fixture(autouse=True)
    def _reset_breakers(self):
        reset_all_breakers()
        yield
        reset_all_breakers()

    @pytest.fixture
    def config(self):
        return OllamaConfig(host="http://localhost:11434", timeout=30, num_ctx=8192)

    @pytest.fixture
    def adapter(self, config):
        return OllamaAdapter(config)

    @staticmethod
    def _chat_response(content: str, model: str = "llama2") -> MagicMock:
        response = MagicMock()
        response.message = MagicMock(content=content)
        response.model = model
        return response

    @pytest.mark.asyncio
    async def test_generate_calls_client(self, adapter):
        """Generate calls ollama client with correct params."""
        adapter._client.chat = AsyncMock(return_value=self._chat_response("Hello!"))

        messages = [LLMMessage(role="user", content="Hi")]
        result = await adapter.generate(messages, model="llama2", temperature=0.1)

        assert result.content == "Hello!"
        assert result.model == "llama2"
        kwargs = adapter._client.chat.call_args.kwargs
        assert kwargs["options"] == {"temperature": 0.1, "num_ctx": 8192}
        assert "format" not in kwargs

    @pytest.mark.asyncio
    async def test_generate_default_model(self, adapter):
        """Generate uses default model if not specified."""
        adapter._client.chat = AsyncMock(return_value=self._chat_response("Response", model=""))

        result = await adapter.generate([LLMMessage(role="user", content="Hi")])

        assert adapter._client.chat.call_args.kwargs["model"] == DEFAULT_MODEL
        assert result.model == DEFAULT_MODEL

    @pytest.mark.asyncio
    async def test_generate_passes_schema_as_format(self, adapter):
        """A JSON schema goes to Ollama's structured-output format."""
        adapter._client.chat = AsyncMock(return_value=self._chat_response("{}"))
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}

        await adapter.generate([LLMMessage(role="user", content="Hi")], response_format=schema)
        assert adapter._client.chat.call_args.kwargs["format"] == schema

        await adapter.generate([LLMMessage(role="user", content="Hi")], response_format="json")
        assert adapter._client.chat.call_args.kwargs["format"] == "json"

    @pytest.mark.asyncio
    async def test_circuit_opens_after_repeated_failures(self, adapter):
        """Five failures open the breaker; the next call is rejected without a request."""
        adapter._client.chat = AsyncMock(side_effect=ConnectionError("refused"))
        messages = [LLMMessage(role="user", content="Hi")]

        for _ in range(5):
            with pytest.raises(ConnectionError):
                await adapter.generate(messages)
        with pytest.raises(CircuitOpenError):
            await adapter.generate(messages)

        assert adapter._client.chat.await_count == 5

    @pytest.mark.asyncio
    async def test_request_errors_do_not_open_circuit(self, adapter):
        """A missing model is a request error, not a backend outage."""
        adapter._client.chat = AsyncMock(side_effect=ResponseError("model not found", 404))
        messages = [LLMMessage(role="user", content="Hi")]

        for _ in range(6):
            with pytest.raises(ResponseError):
                await adapter.generate(messages)

        assert adapter._client.chat.await_count == 6

    @pytest.mark.asyncio
    async def test_is_available_true(self, adapter):
        """is_available returns True when server responds."""
        mock_response = MagicMock()
        mock_response.status_code = 200

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=mock_response
            )
            result = await adapter.is_available()

        assert result is True

    @pytest.mark.asyncio
    async def test_is_available_false_on_error(self, adapter):
        """is_available returns False on connection error."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            result = await adapter.is_available()

        assert result is False

    @pytest.mark.asyncio
    async def test_list_models(self, adapter):
        """list_models returns model names."""
        model1 = MagicMock()
        model1.model = "llama2"
        model2 = MagicMock()
        model2.model = "codellama"
        mock_response = MagicMock()
        mock_response.models = [model1, model2]

        adapter._client.list = AsyncMock(return_value=mock_response)

        result = await adapter.list_models()
        assert result == ["llama2", "codellama"]

    @pytest.mark.asyncio
    async def test_list_models_empty_on_error(self, adapter):
        """list_models returns empty list on error."""
        adapter._client.list = AsyncMock(side_effect=httpx.ConnectError("refused"))

        result = await adapter.list_models()
        assert result == []


class TestOpenAICompatibleAdapter:
    """Tests for OpenAICompatibleAdapter."""

    @pytest.fixture
    def config(self):
        return OpenAICompatibleConfig(
            base_url="http://localhost:1234/v1",
            api_key="test-key",
            timeout=30,
        )

    @pytest.fixture
    def adapter(self, config):
        return OpenAICompatibleAdapter(config)

    @pytest.fixture
    def client(self, adapter):
        """Replace the persistent HTTP client with a mock."""
        mock = MagicMock()
        mock.is_closed = False
        adapter._client = mock
        return mock

    @staticmethod
    def _response(status: int = 200, payload: dict | None = None) -> MagicMock:
        response = MagicMock()
        response.status_code = status
        response.json.return_value = payload or {}
        return response

    def test_init_sets_headers(self, adapter):
        """Init sets authorization header if api_key provided."""
        assert adapter._headers["Authorization"] == "Bearer test-key"

    def test_init_no_auth_header_without_key(self):
        """No auth header if api_key is empty."""
        config = OpenAICompatibleConfig(base_url="http://localhost:1234/v1")
        adapter = OpenAICompatibleAdapter(config)
        assert "Authorization" not in adapter._headers

    @pytest.mark.asyncio
    async def test_generate_calls_api(self, adapter, client):
        """Generate calls OpenAI-compatible API."""
        client.post = AsyncMock(
            return_value=self._response(payload={"choices": [{"message": {"content": "Hello!"}}]})
        )

        result = await adapter.generate([LLMMessage(role="user", content="Hi")], model="local")

        assert result.content == "Hello!"
        assert result.model == "local"
        body = client.post.call_args.kwargs["json"]
        assert body["model"] == "local"
        assert "response_format" not in body

    @pytest.mark.asyncio
    async def test_generate_default_model(self, adapter, client):
        """Generate uses 'default' model if not specified."""
        client.post = AsyncMock(
            return_value=self._response(payload={"choices": [{"message": {"content": "x"}}]})
        )

        await adapter.generate([LLMMessage(role="user", content="Hi")])

        assert client.post.call_args.kwargs["json"]["model"] == "default"

    @pytest.mark.asyncio
    async def test_generate_maps_response_format(self, adapter, client):
        """Schema → json_schema, "json" → json_object."""
        client.post = AsyncMock(
            return_value=self._response(payload={"choices": [{"message": {"content": "{}"}}]})
        )
        schema = {"type": "object"}
        messages = [LLMMessage(role="user", content="Hi")]

        await adapter.generate(messages, response_format=schema)
        fmt = client.post.call_args.kwargs["json"]["response_format"]
        assert fmt["type"] == "json_schema"
        assert fmt["json_schema"]["schema"] == schema

        await adapter.generate(messages, response_format="json")
        assert client.post.call_args.kwargs["json"]["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_generate_handles_error(self, adapter, client):
        """Generate raises on API error."""
        response = self._response(status=500)
        response.text = "Internal Server Error"
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "500 Error", request=MagicMock(), response=response
        )
        client.post = AsyncMock(return_value=response)

        with pytest.raises(httpx.HTTPStatusError):
            await adapter.generate([LLMMessage(role="user", content="Hi")])

    @pytest.mark.asyncio
    async def test_is_available_true(self, adapter, client):
        """is_available returns True when server responds."""
        client.get = AsyncMock(return_value=self._response())
        assert await adapter.is_available() is True

    @pytest.mark.asyncio
    async def test_is_available_false_on_error(self, adapter, client):
        """is_available returns False on connection error."""
        client.get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
        assert await adapter.is_available() is False

    @pytest.mark.asyncio
    async def test_list_models(self, adapter, client):
        """list_models returns model IDs."""
        client.get = AsyncMock(
            return_value=self._response(payload={"data": [{"id": "model-1"}, {"id": "model-2"}]})
        )
        assert await adapter.list_models() == ["model-1", "model-2"]

    @pytest.mark.asyncio
    async def test_list_models_empty_on_error(self, adapter, client):
        """list_models returns empty list on error."""
        client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        assert await adapter.list_models() == []

    @pytest.mark.asyncio
    async def test_close_releases_client(self, adapter, client):
        client.aclose = AsyncMock()
        await adapter.close()
        client.aclose.assert_awaited_once()
        assert adapter._client is None
