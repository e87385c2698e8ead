"""Wiki application layer."""

from starwiki.application.wiki.dto import WikiRequest, WikiResponse, WikiStreamEvent
from starwiki.application.wiki.use_case import WikiUseCase

__all__ = [
    "WikiRequest",
    "WikiResponse",
    "WikiStreamEvent",
    "WikiUseCase",
]
