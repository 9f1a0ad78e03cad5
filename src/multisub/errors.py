"""Exceptions raised by the translation pipeline."""


class TranslationError(Exception):
    """Base class for multisub errors."""


class ConfigurationError(TranslationError):
    """A provider was selected without the settings it needs."""


class TranslationCancelled(TranslationError):
    """The caller requested cancellation; never retried."""

    def __init__(self, message: str = "Translation was cancelled"):
        super().__init__(message)


class BackendError(TranslationError):
    """The completion backend failed (network, rate limit, bad response)."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ChunkValidationError(TranslationError):
    """A chunk still failed structural validation after every inner retry."""

    def __init__(self, errors: list[str], last_result: str):
        summary = "; ".join(errors[:5])
        super().__init__(f"Structural validation failed: {summary}")
        self.errors = errors
        self.last_result = last_result


class ChunkTranslationFailed(TranslationError):
    """A chunk could not be translated within the allowed number of attempts."""

    def __init__(self, chunk_index: int, attempts: int):
        super().__init__(
            f"Chunk {chunk_index + 1} failed after {attempts} attempts"
        )
        self.chunk_index = chunk_index
        self.attempts = attempts
