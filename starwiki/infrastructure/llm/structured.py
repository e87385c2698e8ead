"""Structured generation over an LLMPort: prompt → JSON → validator."""

import logging
from typing import Any

from starwiki.domain.entities.model_selection import GenerationTask
from starwiki.domain.errors import ValidationError
from starwiki.domain.ports.generation import Validator
from starwiki.domain.ports.llm import LLMMessage, LLMPort
from starwiki.domain.services.model_router import ModelRouter
from starwiki.infrastructure.llm.llm_helpers import extract_json, generate_with_retry

logger = logging.getLogger(__name__)

SCHEMALESS_SUFFIX = "\n\nReturn one JSON object only (no fences, no markdown)."


class LLMStructuredGenerator:
    """Implements StructuredGenerationPort on top of any LLMPort.

    The model and temperature for each call come from the ModelRouter. With a
    schema the backend is asked for schema-constrained output; without one it
    is asked for plain JSON mode and the prompt says so.
    """

    def __init__(self, llm: LLMPort, model_router: ModelRouter) -> None:
        self._llm = llm
        self._router = model_router

    async def generate(
        self,
        system: str,
        user: str,
        *,
        schema: dict | None,
        validator: Validator,
        task: GenerationTask,
    ) -> Any:
        """Generate and validate one value.

        Raises:
            ValidationError: Reply was not JSON or failed the validator.

        """
        model = self._router.select_model(task)
        messages = [
            LLMMessage(role="system", content=system),
            LLMMessage(role="user", content=user if schema else user + SCHEMALESS_SUFFIX),
        ]
        response = await generate_with_retry(
            self._llm,
            messages,
            model,
            temperature=self._router.temperature_for(task),
            response_format=schema if schema else "json",
        )
        try:
            value = extract_json(response.content)
        except ValueError as e:
            raise ValidationError(f"{task.value}: reply is not JSON ({e})") from e
        if not validator(value):
            logger.debug("Validator rejected %s reply from %s: %.200s", task.value, model, response.content)
            raise ValidationError(f"{task.value}: reply failed validation")
        return value
