"""Ollama adapter: LLMPort over the ollama AsyncClient, guarded by a circuit breaker."""

import logging

import httpx
from ollama import AsyncClient, ResponseError

from starwiki.domain.ports.config import OllamaConfig
from starwiki.domain.ports.llm import LLMMessage, LLMResponse, ResponseFormat
from starwiki.infrastructure.resilience import CircuitBreakerConfig, get_circuit_breaker

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "qwen2.5-coder:7b"
CONNECT_TIMEOUT = 5.0

# Only an unreachable or hanging server trips the breaker; a bad model name
# or a rejected request is the caller's problem, not the backend's.
BACKEND_FAILURES = (httpx.TransportError, TimeoutError, ConnectionError)


class OllamaAdapter:
    """Chat completions from a local or remote Ollama server.

    response_format is sent as Ollama's ``format``: a dict is a JSON schema
    for structured output, "json" asks for any JSON object.
    """

    def __init__(self, config: OllamaConfig) -> None:
        self._config = config
        read = float(config.timeout)
        self._client = AsyncClient(
            host=config.host,
            timeout=httpx.Timeout(connect=CONNECT_TIMEOUT, read=read, write=read, pool=30.0),
        )
        self._breaker = get_circuit_breaker(
            "ollama", CircuitBreakerConfig(tracked=BACKEND_FAILURES)
        )

    def _options(self, temperature: float) -> dict:
        options: dict = {"temperature": temperature}
        if self._config.num_ctx is not None:
            options["num_ctx"] = self._config.num_ctx
        if self._config.num_predict is not None:
            options["num_predict"] = self._config.num_predict
        return options

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        response_format: ResponseFormat = None,
    ) -> LLMResponse:
        """One non-streaming chat call.

        Raises:
            CircuitOpenError: Server failed repeatedly and is cooling down.

        """
        model = model or DEFAULT_MODEL
        request: dict = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "options": self._options(temperature),
        }
        if response_format is not None:
            request["format"] = response_format

        async def chat() -> LLMResponse:
            response = await self._client.chat(**request)
            content = response.message.content if response.message else None
            return LLMResponse(content=content or "", model=response.model or model)

        return await self._breaker.call(chat)

    async def is_available(self) -> bool:
        """True when /api/tags answers 200. Checked on every call."""
        url = f"{self._config.host.rstrip('/')}/api/tags"
        try:
            async with httpx.AsyncClient(timeout=CONNECT_TIMEOUT) as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Ollama not reachable at %s: %s", url, e)
            return False
        return resp.status_code == 200

    async def list_models(self) -> list[str]:
        """Installed model names; empty when the server cannot be asked."""
        try:
            resp = await self._client.list()
        except (httpx.HTTPError, ConnectionError, ResponseError) as e:
            logger.debug("Ollama list_models failed: %s", e)
            return []
        # Newer ollama releases expose .model, older ones .name
        names = [getattr(m, "model", None) or getattr(m, "name", "") for m in resp.models or []]
        return [n for n in names if n]
