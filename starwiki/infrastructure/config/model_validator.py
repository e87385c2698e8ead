"""Startup check: are the configured tier models installed on the provider?"""

import structlog

from starwiki.domain.ports.config import AppConfig
from starwiki.domain.ports.llm import LLMPort

log = structlog.get_logger()


def _base(name: str) -> str:
    return name.strip().lower().split(":", 1)[0]


async def validate_models_config(llm: LLMPort, config: AppConfig) -> list[str]:
    """Return the tiers whose model the provider does not list.

    A tag-less name matches any tag of the same model ("gpt-oss" matches
    "gpt-oss:20b"). Only logs; an unreachable provider skips the check.
    """
    provider = config.llm.provider
    try:
        installed = [m.strip().lower() for m in await llm.list_models() if m]
    except Exception as e:  # noqa: BLE001
        log.warning("models_validation_skipped", reason="llm_unreachable", provider=provider, error=str(e))
        return []
    if not installed:
        log.warning("models_validation_skipped", reason="no_models_returned", provider=provider)
        return []

    known = set(installed) | {_base(m) for m in installed}
    tiers = config.models.get_models_for_provider(provider)._asdict()
    missing = [
        tier
        for tier, model in tiers.items()
        if model and model.strip().lower() not in known and _base(model) not in known
    ]
    for tier in missing:
        log.warning("model_not_found", role=tier, model=tiers[tier], provider=provider)
    if not missing:
        log.info("models_validated", provider=provider, models=sorted(set(tiers.values())))
    return missing
