"""Configuration management via environment variables."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_MODEL = "gpt-4.1-mini"


def _int_env(name: str, default: int, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    if number < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {number}")
    return number


@dataclass
class Config:
    """Application configuration loaded from environment."""

    openai_api_key: str | None = None
    deepseek_api_key: str | None = None
    deepseek_base_url: str = "https://api.deepseek.com"
    openrouter_api_key: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    groq_api_key: str | None = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    ollama_host: str | None = None

    model: str = DEFAULT_MODEL
    multilang_model: str | None = None
    concurrency: int = 5
    max_retries: int = 3  # validation retries per chunk call
    max_attempts: int = 10  # backend attempts per chunk
    language_retries: int = 5

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        load_dotenv()
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY"),
            deepseek_base_url=os.getenv(
                "DEEPSEEK_BASE_URL", "https://api.deepseek.com"
            ),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY"),
            openrouter_base_url=os.getenv(
                "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
            ),
            groq_api_key=os.getenv("GROQ_API_KEY"),
            groq_base_url=os.getenv(
                "GROQ_BASE_URL", "https://api.groq.com/openai/v1"
            ),
            ollama_host=os.getenv("OLLAMA_HOST"),
            model=os.getenv("MULTISUB_MODEL", DEFAULT_MODEL),
            multilang_model=os.getenv("MULTISUB_MULTILANG_MODEL") or None,
            concurrency=_int_env("MULTISUB_CONCURRENCY", 5),
            max_retries=_int_env("MULTISUB_MAX_RETRIES", 3),
            max_attempts=_int_env("MULTISUB_MAX_ATTEMPTS", 10),
            language_retries=_int_env("MULTISUB_LANGUAGE_RETRIES", 5),
        )

    def has_openai(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.openai_api_key)

    def has_deepseek(self) -> bool:
        """Check if DeepSeek API key is configured."""
        return bool(self.deepseek_api_key)

    def has_openrouter(self) -> bool:
        """Check if OpenRouter API key is configured."""
        return bool(self.openrouter_api_key)

    def has_groq(self) -> bool:
        """Check if Groq API key is configured."""
        return bool(self.groq_api_key)

    def resolve_multilang_model(
        self, cli_model: str | None = None, main_model: str | None = None
    ) -> str | None:
        """Model for English -> other language passes.

        An explicit option wins, then MULTISUB_MULTILANG_MODEL, then the model
        of the Korean pass. None leaves the choice to the provider default.
        """
        return cli_model or self.multilang_model or main_model
