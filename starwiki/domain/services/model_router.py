"""Model Router - select model and temperature per generation task."""

from starwiki.domain.entities.model_selection import (
    CANDIDATE_TASKS,
    JUDGE_TASKS,
    TASK_COMPLEXITY,
    GenerationTask,
    TaskComplexity,
)
from starwiki.domain.ports.config import ModelConfig, WikiConfig


class ModelRouter:
    """Select model by task weight.

    Uses config overrides per provider, no hardcoding.
    """

    def __init__(
        self,
        config: ModelConfig,
        provider: str,
        wiki: WikiConfig | None = None,
    ) -> None:
        self._config = config
        self._provider = provider
        self._models = config.get_models_for_provider(provider)
        self._wiki = wiki or WikiConfig()

    def complexity_for(self, task: GenerationTask) -> TaskComplexity:
        """Task weight; unknown tasks count as medium."""
        return TASK_COMPLEXITY.get(task, TaskComplexity.MEDIUM)

    def select_model(self, task: GenerationTask) -> str:
        """Select model name for task."""
        complexity = self.complexity_for(task)
        if complexity == TaskComplexity.SIMPLE:
            return self._models.simple
        if complexity == TaskComplexity.COMPLEX:
            return self._models.complex
        return self._models.medium

    def temperature_for(self, task: GenerationTask) -> float:
        """Sampling temperature: warm for candidates, cold for judges."""
        if task in CANDIDATE_TASKS:
            return self._wiki.candidate_temperature
        if task in JUDGE_TASKS:
            return self._wiki.judge_temperature
        return self._wiki.default_temperature
