"""Application configuration models."""

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field


class ResolvedModelSet(NamedTuple):
    """Model ids a provider actually uses, one per task weight."""

    simple: str
    medium: str
    complex: str


class ProviderModelSet(BaseModel):
    """Per-provider tier overrides; unset tiers inherit the defaults."""

    simple: str | None = None
    medium: str | None = None
    complex: str | None = None


class ModelConfig(BaseModel):
    """Default model per task weight plus per-provider overrides keyed by provider name."""

    model_config = ConfigDict(extra="ignore")

    simple: str = "qwen2.5-coder:7b"
    medium: str = "qwen2.5-coder:7b"
    complex: str = "qwen2.5-coder:7b"
    overrides: dict[str, ProviderModelSet] = Field(default_factory=dict)

    def get_models_for_provider(self, provider: str) -> ResolvedModelSet:
        override = self.overrides.get(provider) or ProviderModelSet()
        return ResolvedModelSet(
            *(
                getattr(override, tier) or getattr(self, tier)
                for tier in ResolvedModelSet._fields
            )
        )


class LLMConfig(BaseModel):
    provider: str = "ollama"  # ollama | lm_studio


class OllamaConfig(BaseModel):
    host: str = "http://localhost:11434"
    timeout: int = Field(default=120, gt=0)
    # None leaves the model's own default
    num_ctx: int | None = None
    num_predict: int | None = None


class OpenAICompatibleConfig(BaseModel):
    """Any /v1/chat/completions server: LM Studio, vLLM, LocalAI."""

    base_url: str = "http://localhost:1234/v1"
    api_key: str = ""
    timeout: int = Field(default=120, gt=0)
    max_tokens: int | None = None


class SecurityConfig(BaseModel):
    rate_limit_requests_per_minute: int = Field(default=100, ge=1)
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])


class WikiConfig(BaseModel):
    """Page pipeline settings.

    language_name is used when a document does not name its own language.
    Checkpoints go under ``checkpoint_dir/<run id>/<page id>/``; packing
    writes pages and index.json to ``dist_dir``.
    """

    language_name: str = "English"
    checkpoint_dir: str = ".wiki_runs"
    dist_dir: str = "dist/wiki"
    candidate_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    judge_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    default_temperature: float = Field(default=0.3, ge=0.0, le=2.0)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8000, gt=0, lt=65536)


class AppConfig(BaseModel):
    """Everything load_config produces."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    openai_compatible: OpenAICompatibleConfig = Field(default_factory=OpenAICompatibleConfig)
    models: ModelConfig = Field(default_factory=ModelConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    wiki: WikiConfig = Field(default_factory=WikiConfig)
    log_level: str = "INFO"
    log_file: str = ""  # empty: stdout only
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3
