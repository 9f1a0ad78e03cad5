"""Text-completion backends used for translation (OpenAI-compatible and Ollama)."""

import logging
from abc import ABC, abstractmethod
from typing import TypedDict

import httpx
import ollama
import openai
from openai import AsyncOpenAI

from .cancellation import CancellationToken, check_cancelled
from .config import Config
from .errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "deepseek", "openrouter", "groq", "ollama")
DEFAULT_TEMPERATURE = 0.3
DEFAULT_OLLAMA_MODEL = "llama3.1:8b"


class Message(TypedDict):
    role: str
    content: str


def build_messages(
    system_prompt: str,
    history: list[Message] | None,
    user_payload: str,
) -> list[Message]:
    """Assemble the chat message list sent to a backend."""
    messages: list[Message] = [{"role": "system", "content": system_prompt}]
    messages.extend(history or [])
    messages.append({"role": "user", "content": user_payload})
    return messages


class TranslationBackend(ABC):
    """Anything that turns a system prompt and a payload into one completion."""

    name: str = "backend"
    model: str = ""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        messages: list[Message] | None,
        user_payload: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return the completion text for user_payload.

        Raises:
            BackendError: the service call failed
            TranslationCancelled: cancellation was requested before the call
        """


class OpenAIBackend(TranslationBackend):
    """Chat completions through the OpenAI SDK.

    Also used for DeepSeek, OpenRouter and Groq, which expose the same API
    under a different base URL.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        name: str = "openai",
        temperature: float = DEFAULT_TEMPERATURE,
        max_completion_tokens: int | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.name = name
        self.model = model
        self.temperature = temperature
        self.max_completion_tokens = max_completion_tokens
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def complete(
        self,
        system_prompt: str,
        messages: list[Message] | None,
        user_payload: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        check_cancelled(cancel_token)

        kwargs = {
            "model": self.model,
            "messages": build_messages(system_prompt, messages, user_payload),
        }
        # GPT-5 models don't support custom temperature
        if not self.model.startswith("gpt-5"):
            kwargs["temperature"] = self.temperature
        if self.max_completion_tokens:
            kwargs["max_completion_tokens"] = self.max_completion_tokens

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            raise BackendError(f"{self.name} request failed: {e}", self.name) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class OllamaBackend(TranslationBackend):
    """Chat completions from a local Ollama server."""

    name = "ollama"

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL,
        host: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        client: ollama.AsyncClient | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or ollama.AsyncClient(host=host)

    async def complete(
        self,
        system_prompt: str,
        messages: list[Message] | None,
        user_payload: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        check_cancelled(cancel_token)

        try:
            response = await self.client.chat(
                model=self.model,
                messages=build_messages(system_prompt, messages, user_payload),
                options={"temperature": self.temperature},
            )
        except (
            ollama.ResponseError,
            ollama.RequestError,
            httpx.HTTPError,
            ConnectionError,
        ) as e:
            raise BackendError(f"ollama request failed: {e}", self.name) from e

        return response["message"]["content"] or ""


def create_backend(
    provider: str,
    config: Config,
    model: str | None = None,
) -> TranslationBackend:
    """Build the backend for a provider name using configured credentials.

    Raises:
        ConfigurationError: the provider is unknown or has no API key
    """
    if provider == "ollama":
        return OllamaBackend(
            model=model or DEFAULT_OLLAMA_MODEL, host=config.ollama_host
        )

    if provider == "openai":
        configured, api_key, base_url, env = (
            config.has_openai(),
            config.openai_api_key,
            None,
            "OPENAI_API_KEY",
        )
    elif provider == "deepseek":
        configured, api_key, base_url, env = (
            config.has_deepseek(),
            config.deepseek_api_key,
            config.deepseek_base_url,
            "DEEPSEEK_API_KEY",
        )
    elif provider == "openrouter":
        configured, api_key, base_url, env = (
            config.has_openrouter(),
            config.openrouter_api_key,
            config.openrouter_base_url,
            "OPENROUTER_API_KEY",
        )
    elif provider == "groq":
        configured, api_key, base_url, env = (
            config.has_groq(),
            config.groq_api_key,
            config.groq_base_url,
            "GROQ_API_KEY",
        )
    else:
        raise ConfigurationError(f"Unknown translation provider: {provider}")

    if not configured:
        raise ConfigurationError(f"{env} environment variable required for {provider}")

    if provider == "deepseek" and model is None:
        model = "deepseek-chat"

    logger.debug("Using %s backend with model %s", provider, model or config.model)
    return OpenAIBackend(
        api_key=api_key,
        model=model or config.model,
        base_url=base_url,
        name=provider,
        max_completion_tokens=4000 if provider == "openai" else None,
    )
