"""FastAPI dependencies - DI container."""

from typing import TYPE_CHECKING

from slowapi import Limiter
from slowapi.util import get_remote_address

from starwiki.api.container import get_container

if TYPE_CHECKING:
    from starwiki.application.wiki.use_case import WikiUseCase

limiter = Limiter(key_func=get_remote_address)


def wiki_rate_limit() -> str:
    """Per-client limit for drafting requests, from [security] config."""
    return f"{get_container().config.security.rate_limit_requests_per_minute}/minute"


def get_wiki_use_case() -> "WikiUseCase":
    """WikiUseCase over the configured LLM."""
    return get_container().wiki_use_case
