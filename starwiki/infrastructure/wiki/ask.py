"""Structured-call adapter: schema first, one schemaless retry, same validator."""

import logging
from typing import Any

from starwiki.domain.errors import GenerationError
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.infrastructure.wiki.schemas import OutputSpec

logger = logging.getLogger(__name__)


async def ask(
    service: StructuredGenerationPort,
    system: str,
    user: str,
    spec: OutputSpec,
) -> Any:
    """One structured call for spec.

    Some backends choke on a schema; the retry drops it but keeps the
    validator, so a value that comes back always satisfies spec.validator.

    Raises:
        GenerationError: Both attempts failed.

    """
    try:
        return await service.generate(
            system, user, schema=spec.schema, validator=spec.validator, task=spec.task
        )
    except Exception as e:
        logger.debug("%s with schema failed, retrying without: %s", spec.task.value, e)
    try:
        return await service.generate(
            system, user, schema=None, validator=spec.validator, task=spec.task
        )
    except Exception as e:
        raise GenerationError(spec.task.value, e) from e
