"""Process-wide service wiring for the HTTP app and the CLI."""

from functools import cached_property
from typing import TYPE_CHECKING

from starwiki.domain.ports.config import AppConfig
from starwiki.domain.ports.generation import StructuredGenerationPort
from starwiki.domain.ports.llm import LLMPort
from starwiki.domain.services.model_router import ModelRouter
from starwiki.infrastructure.config import load_config

if TYPE_CHECKING:
    from starwiki.application.wiki.use_case import WikiUseCase


class Container:
    """Builds each service on first access and keeps it.

    Adapters are imported lazily so that loading the container does not
    pull in a backend client the configured provider never uses.
    """

    def __init__(self, config: AppConfig | None = None):
        self._given_config = config

    @cached_property
    def config(self) -> AppConfig:
        return self._given_config or load_config()

    @cached_property
    def llm(self) -> LLMPort:
        if self.config.llm.provider == "lm_studio":
            from starwiki.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

            return OpenAICompatibleAdapter(self.config.openai_compatible)
        from starwiki.infrastructure.llm.ollama import OllamaAdapter

        return OllamaAdapter(self.config.ollama)

    @cached_property
    def model_router(self) -> ModelRouter:
        return ModelRouter(self.config.models, provider=self.config.llm.provider, wiki=self.config.wiki)

    @cached_property
    def generator(self) -> StructuredGenerationPort:
        from starwiki.infrastructure.llm.structured import LLMStructuredGenerator

        return LLMStructuredGenerator(self.llm, self.model_router)

    @cached_property
    def wiki_use_case(self) -> "WikiUseCase":
        from starwiki.application.wiki.use_case import WikiUseCase

        return WikiUseCase(self.generator, self.config.wiki)


_container: Container | None = None


def get_container() -> Container:
    global _container
    if _container is None:
        _container = Container()
    return _container
