"""LLM helpers: transport retry wrapper and JSON payload extraction."""

import json
import re
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from starwiki.domain.ports.llm import LLMMessage, LLMPort, LLMResponse, ResponseFormat
from starwiki.infrastructure.llm.reasoning_parser import strip_reasoning

_FENCE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)

TRANSIENT_ERRORS = (
    TimeoutError,
    ConnectionError,
    httpx.TimeoutException,
    httpx.TransportError,
)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
)
async def _generate_impl(
    llm: LLMPort,
    messages: list[LLMMessage],
    model: str,
    temperature: float,
    response_format: ResponseFormat,
) -> LLMResponse:
    """Internal: generate with retry."""
    return await llm.generate(
        messages=messages,
        model=model,
        temperature=temperature,
        response_format=response_format,
    )


async def generate_with_retry(
    llm: LLMPort,
    messages: list[LLMMessage],
    model: str,
    temperature: float = 0.7,
    response_format: ResponseFormat = None,
) -> LLMResponse:
    """Generate with retry on timeout/connection errors."""
    return await _generate_impl(llm, messages, model, temperature, response_format)


def extract_json(content: str) -> Any:
    """Parse the JSON value in a model reply.

    Drops <think> blocks and a surrounding ``` fence; if the reply still has
    prose around it, the outermost {...} span is tried.

    Raises:
        ValueError: No JSON value could be decoded.

    """
    text = strip_reasoning(content).strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("no JSON object in model reply") from None
        return json.loads(text[start : end + 1])
