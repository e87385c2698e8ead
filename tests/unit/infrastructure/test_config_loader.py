"""Tests for the TOML config loader."""

import pytest

from starwiki.infrastructure.config.toml_loader import (
    ENV_OVERRIDES,
    _apply_env_overrides,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def test_repository_defaults():
    config = load_config()

    assert config.wiki.checkpoint_dir == ".wiki_runs"
    assert config.wiki.judge_temperature == 0.1
    assert config.ollama.timeout == 180
    assert config.models.get_models_for_provider("lm_studio").simple == "local-model"


def test_custom_dir(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[llm]\nprovider = "custom_provider"\n\n[server]\nport = 9999\n\n'
        '[wiki]\nlanguage_name = "French"\n'
    )

    config = load_config(tmp_path)

    assert config.llm.provider == "custom_provider"
    assert config.server.port == 9999
    assert config.wiki.language_name == "French"


def test_development_file_merges_per_section(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[server]\nport = 8000\n\n[wiki]\ndist_dir = "dist/wiki"\ncheckpoint_dir = ".runs"\n'
    )
    (tmp_path / "development.toml").write_text(
        '[llm]\nprovider = "lm_studio"\n\n[wiki]\ndist_dir = "out"\n'
    )

    config = load_config(tmp_path)

    assert config.llm.provider == "lm_studio"
    assert config.server.port == 8000
    assert config.wiki.dist_dir == "out"
    assert config.wiki.checkpoint_dir == ".runs"


def test_provider_model_table_overrides_single_tier(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[models]\nsimple = "s"\nmedium = "m"\ncomplex = "c"\n\n[models.lm_studio]\ncomplex = "big"\n'
    )

    resolved = load_config(tmp_path).models.get_models_for_provider("lm_studio")

    assert resolved == ("s", "m", "big")


def test_empty_dir_gives_defaults(tmp_path):
    config = load_config(tmp_path)

    assert config.llm.provider == "ollama"
    assert config.wiki.language_name == "English"
    assert config.log_file == ""


def test_env_beats_toml(tmp_path, monkeypatch):
    (tmp_path / "default.toml").write_text('[wiki]\nlanguage_name = "French"\n')
    monkeypatch.setenv("WIKI_LANGUAGE", "Japanese")

    assert load_config(tmp_path).wiki.language_name == "Japanese"


@pytest.mark.parametrize(
    ("name", "value", "section", "key", "expected"),
    [
        ("LLM_PROVIDER", "lm_studio", "llm", "provider", "lm_studio"),
        ("OLLAMA_HOST", "http://custom:11434", "ollama", "host", "http://custom:11434"),
        ("OPENAI_BASE_URL", "http://vllm:8000/v1", "openai_compatible", "base_url", "http://vllm:8000/v1"),
        ("PORT", "9000", "server", "port", 9000),
        ("LOG_LEVEL", "debug", "logging", "level", "DEBUG"),
        ("WIKI_DIST_DIR", " /tmp/dist ", "wiki", "dist_dir", "/tmp/dist"),
        ("CORS_ORIGINS", "http://a.com, http://b.com", "security", "cors_origins", ["http://a.com", "http://b.com"]),
    ],
)
def test_env_override(monkeypatch, name, value, section, key, expected):
    monkeypatch.setenv(name, value)

    assert _apply_env_overrides({})[section][key] == expected


def test_invalid_number_is_ignored(monkeypatch):
    monkeypatch.setenv("PORT", "not_a_number")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "lots")

    result = _apply_env_overrides({"server": {"port": 8000}})

    assert result["server"] == {"port": 8000}
    assert "rate_limit_requests_per_minute" not in result.get("security", {})


def test_wiki_section_keeps_unrelated_keys(monkeypatch):
    monkeypatch.setenv("WIKI_CHECKPOINT_DIR", "/tmp/runs")

    result = _apply_env_overrides({"wiki": {"language_name": "English"}})

    assert result["wiki"] == {"language_name": "English", "checkpoint_dir": "/tmp/runs"}
