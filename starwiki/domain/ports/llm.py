"""Chat model port shared by the Ollama and OpenAI-compatible adapters."""

from typing import Protocol

from pydantic import BaseModel


class LLMMessage(BaseModel):
    role: str  # system | user | assistant
    content: str


class LLMResponse(BaseModel):
    content: str
    model: str
    done: bool = True


# None: free text; "json": any JSON object; dict: JSON schema to follow.
ResponseFormat = dict | str | None


class LLMPort(Protocol):
    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        response_format: ResponseFormat = None,
    ) -> LLMResponse:
        """One complete, non-streamed reply."""
        ...

    async def is_available(self) -> bool: ...

    async def list_models(self) -> list[str]:
        """Installed model ids; empty when the backend cannot be asked."""
        ...
