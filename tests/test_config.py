"""Tests for environment configuration."""

import pytest

from multisub import config as config_module
from multisub.config import Config
from multisub.errors import ConfigurationError

ENV_VARS = [
    "OPENAI_API_KEY",
    "DEEPSEEK_API_KEY",
    "DEEPSEEK_BASE_URL",
    "OPENROUTER_API_KEY",
    "GROQ_API_KEY",
    "OLLAMA_HOST",
    "MULTISUB_MODEL",
    "MULTISUB_MULTILANG_MODEL",
    "MULTISUB_CONCURRENCY",
    "MULTISUB_MAX_RETRIES",
    "MULTISUB_MAX_ATTEMPTS",
    "MULTISUB_LANGUAGE_RETRIES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config.from_env()
    assert config.openai_api_key is None
    assert config.model == "gpt-4.1-mini"
    assert config.deepseek_base_url == "https://api.deepseek.com"
    assert (config.concurrency, config.max_retries, config.max_attempts, config.language_retries) == (5, 3, 10, 5)
    assert not config.has_openai()
    assert config.resolve_multilang_model() is None
    assert config.resolve_multilang_model(main_model="deepseek-reasoner") == "deepseek-reasoner"


def test_values_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GROQ_API_KEY", "gsk")
    monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
    monkeypatch.setenv("MULTISUB_MODEL", "gpt-5-mini")
    monkeypatch.setenv("MULTISUB_MULTILANG_MODEL", "gpt-4.1-nano")
    monkeypatch.setenv("MULTISUB_CONCURRENCY", "8")
    monkeypatch.setenv("MULTISUB_LANGUAGE_RETRIES", "2")

    config = Config.from_env()
    assert config.has_openai()
    assert config.has_groq()
    assert not config.has_deepseek()
    assert config.ollama_host == "http://gpu-box:11434"
    assert config.model == "gpt-5-mini"
    assert config.resolve_multilang_model(main_model="gpt-5-mini") == "gpt-4.1-nano"
    assert config.resolve_multilang_model("o4-mini", "gpt-5-mini") == "o4-mini"
    assert config.concurrency == 8
    assert config.language_retries == 2


def test_empty_int_uses_default(monkeypatch):
    monkeypatch.setenv("MULTISUB_MAX_RETRIES", "")
    assert Config.from_env().max_retries == 3


def test_invalid_int(monkeypatch):
    monkeypatch.setenv("MULTISUB_CONCURRENCY", "lots")
    with pytest.raises(ConfigurationError, match="MULTISUB_CONCURRENCY"):
        Config.from_env()


@pytest.mark.parametrize(
    "name", ["MULTISUB_CONCURRENCY", "MULTISUB_MAX_RETRIES", "MULTISUB_MAX_ATTEMPTS", "MULTISUB_LANGUAGE_RETRIES"]
)
@pytest.mark.parametrize("value", ["0", "-3"])
def test_tunables_must_be_positive(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError, match=f"{name} must be at least 1, got {value}"):
        Config.from_env()
