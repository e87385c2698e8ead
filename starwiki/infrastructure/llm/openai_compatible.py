"""LLMPort over an OpenAI-style /v1/chat/completions server (LM Studio, vLLM, LocalAI)."""

import logging

import httpx

from starwiki.domain.ports.config import OpenAICompatibleConfig
from starwiki.domain.ports.llm import LLMMessage, LLMResponse, ResponseFormat

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0


def response_format_field(response_format: ResponseFormat) -> dict | None:
    """A dict becomes a named json_schema; "json" becomes json_object mode."""
    if response_format is None:
        return None
    if isinstance(response_format, dict):
        return {"type": "json_schema", "json_schema": {"name": "output", "schema": response_format}}
    return {"type": "json_object"}


class OpenAICompatibleAdapter:
    def __init__(self, config: OpenAICompatibleConfig) -> None:
        self._config = config
        self._endpoint = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Shared connection pool, reopened if it was closed."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._config.timeout, headers=self._headers)
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        response_format: ResponseFormat = None,
    ) -> LLMResponse:
        """One completion. Raises httpx.HTTPStatusError on a 4xx/5xx answer."""
        model = model or "default"
        body: dict = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "stream": False,
        }
        if self._config.max_tokens is not None:
            body["max_tokens"] = self._config.max_tokens
        if (fmt := response_format_field(response_format)) is not None:
            body["response_format"] = fmt

        resp = await self.client.post(f"{self._endpoint}/chat/completions", json=body)
        if resp.status_code >= 400:
            logger.error("chat/completions returned %s: %s", resp.status_code, resp.text[:500])
        resp.raise_for_status()

        data = resp.json()
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return LLMResponse(content=message.get("content") or "", model=data.get("model") or model)

    async def _models_payload(self) -> dict:
        resp = await self.client.get(f"{self._endpoint}/models", timeout=PROBE_TIMEOUT)
        resp.raise_for_status()
        return resp.json()

    async def is_available(self) -> bool:
        try:
            resp = await self.client.get(f"{self._endpoint}/models", timeout=PROBE_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug("%s/models unreachable: %s", self._endpoint, e)
            return False
        return resp.status_code == 200

    async def list_models(self) -> list[str]:
        try:
            payload = await self._models_payload()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not list models at %s: %s", self._endpoint, e)
            return []
        return [m["id"] for m in payload.get("data", []) if m.get("id")]
