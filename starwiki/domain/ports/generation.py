"""Structured Generation Port - validated JSON output from a language model."""

from collections.abc import Callable
from typing import Any, Protocol

from starwiki.domain.entities.model_selection import GenerationTask

Validator = Callable[[Any], bool]


class StructuredGenerationPort(Protocol):
    """Returns a value satisfying the validator, or raises."""

    async def generate(
        self,
        system: str,
        user: str,
        *,
        schema: dict | None,
        validator: Validator,
        task: GenerationTask,
    ) -> Any:
        """Generate one structured value for task.

        Raises:
            ValidationError: Output parsed but failed the validator.
            Exception: Transport or decoding failure.

        """
        ...
