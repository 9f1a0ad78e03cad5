"""Subtitle chunk translation with structural validation and retries.

Two retry layers are involved. ``translate_chunk`` re-asks the backend when
its answer does not keep the chunk's block structure. ``translate_chunk_with_retry``
wraps that call and retries, with exponential backoff, when the call raises
(network errors, rate limits, a failing adapter). ``translate_parallel`` runs
the wrapped call over all chunks in sequential batches of bounded size.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .backends import TranslationBackend
from .cancellation import CancellationToken, check_cancelled
from .errors import ChunkTranslationFailed, ChunkValidationError, TranslationCancelled
from .models import ChunkProgress, ProgressEvent, RetryWait, Terminology
from .normalizer import normalize_srt_response
from .prompts import create_system_prompt
from .validation import extract_block_infos, validate_translation

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
MAX_ATTEMPTS = 10
RETRY_BASE_DELAY = 1.0  # seconds
RETRY_MAX_DELAY = 10.0
DEFAULT_CONCURRENCY = 5

ProgressCallback = Callable[[ProgressEvent], None]
StatusCallback = Callable[[str], None]


@dataclass(frozen=True)
class TranslationOptions:
    """Everything a translation pass needs besides the backend."""

    target_lang: str = "en"
    source_lang: str = "ko"
    terminology: Terminology = field(default_factory=Terminology)
    custom_style: str | None = None
    feedback_notes: str | None = None
    max_retries: int = MAX_RETRIES
    max_attempts: int = MAX_ATTEMPTS
    concurrency: int = DEFAULT_CONCURRENCY
    retry_base_delay: float = RETRY_BASE_DELAY
    retry_max_delay: float = RETRY_MAX_DELAY
    # Raise instead of returning an invalid chunk, so the outer layer retries it.
    strict_validation: bool = False

    @property
    def from_korean(self) -> bool:
        return self.source_lang == "ko"

    def system_prompt(self) -> str:
        return create_system_prompt(
            self.target_lang,
            self.terminology,
            from_korean=self.from_korean,
            custom_style=self.custom_style,
            feedback_notes=self.feedback_notes,
        )


@dataclass(frozen=True)
class ValidTranslation:
    text: str


@dataclass(frozen=True)
class InvalidTranslation:
    text: str
    errors: list[str]


ChunkAttempt = ValidTranslation | InvalidTranslation


def _emit(on_progress: ProgressCallback | None, event: ProgressEvent) -> None:
    if on_progress:
        on_progress(event)


def backoff_delay(
    attempt: int,
    base: float = RETRY_BASE_DELAY,
    cap: float = RETRY_MAX_DELAY,
) -> float:
    """Seconds to wait after a failed attempt (1-based): base * 2^(attempt-1), capped."""
    return min(base * 2 ** (attempt - 1), cap)


async def attempt_chunk(
    backend: TranslationBackend,
    system_prompt: str,
    text: str,
    payload: str,
    cancel_token: CancellationToken | None = None,
) -> ChunkAttempt:
    """Run one backend call and classify the normalized answer."""
    raw = await backend.complete(system_prompt, None, payload, cancel_token)
    check_cancelled(cancel_token)

    result = normalize_srt_response(raw)
    validation = validate_translation(text, result)
    if validation.valid:
        return ValidTranslation(result)
    return InvalidTranslation(result, validation.errors)


async def translate_chunk(
    backend: TranslationBackend,
    text: str,
    options: TranslationOptions,
    max_retries: int = MAX_RETRIES,
    cancel_token: CancellationToken | None = None,
) -> str:
    """Translate one SRT chunk, re-asking until the block structure survives.

    Returns the first answer that keeps block count, indices and timecodes.
    Later attempts pad the payload with spaces so the backend does not
    return the same broken answer again. When every attempt fails the last
    normalized answer is returned anyway (callers reassemble by index, which
    tolerates it), unless ``options.strict_validation`` is set.

    Raises:
        TranslationCancelled: the token was set
        ChunkValidationError: strict mode and no valid answer
        BackendError: the backend call failed
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    system_prompt = options.system_prompt()
    last: InvalidTranslation | None = None

    for attempt in range(max_retries):
        check_cancelled(cancel_token)

        payload = text + " " * attempt
        outcome = await attempt_chunk(backend, system_prompt, text, payload, cancel_token)
        if isinstance(outcome, ValidTranslation):
            return outcome.text

        last = outcome
        logger.warning(
            "Translation validation failed (attempt %d/%d): input blocks %d, "
            "output blocks %d: %s%s",
            attempt + 1,
            max_retries,
            len(extract_block_infos(text)),
            len(extract_block_infos(outcome.text)),
            "; ".join(outcome.errors[:5]),
            f" ... and {len(outcome.errors) - 5} more" if len(outcome.errors) > 5 else "",
        )

    logger.error("Translation validation failed after %d attempts", max_retries)
    if options.strict_validation:
        raise ChunkValidationError(last.errors, last.text)
    return last.text


async def translate_chunk_with_retry(
    backend: TranslationBackend,
    chunk: str,
    index: int,
    options: TranslationOptions,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> str:
    """Translate a chunk, retrying failed calls with exponential backoff.

    Raises:
        TranslationCancelled: the token was set (never retried)
        ChunkTranslationFailed: every attempt raised; the last error is chained
    """
    last_error: Exception | None = None

    for attempt in range(1, options.max_attempts + 1):
        check_cancelled(cancel_token)

        try:
            logger.info(
                "Chunk %d: attempt %d/%d", index + 1, attempt, options.max_attempts
            )
            result = await translate_chunk(
                backend, chunk, options, options.max_retries, cancel_token
            )
            logger.info("Chunk %d: done", index + 1)
            return result
        except TranslationCancelled:
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "Chunk %d failed (attempt %d/%d): %s",
                index + 1,
                attempt,
                options.max_attempts,
                e,
            )

        if attempt < options.max_attempts:
            wait = backoff_delay(attempt, options.retry_base_delay, options.retry_max_delay)
            _emit(
                on_progress,
                RetryWait(
                    chunk_index=index,
                    attempt=attempt,
                    wait_ms=round(wait * 1000),
                    message=f"Chunk {index + 1}: retrying in {wait:g}s",
                ),
            )
            await asyncio.sleep(wait)

    check_cancelled(cancel_token)
    raise ChunkTranslationFailed(index, options.max_attempts) from last_error


async def _run_batch(coroutines: list[Awaitable[None]]) -> None:
    tasks = [asyncio.ensure_future(coro) for coro in coroutines]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def translate_parallel(
    backend: TranslationBackend,
    chunks: list[str],
    options: TranslationOptions,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    concurrency: int | None = None,
) -> list[str]:
    """Translate chunks concurrently, at most ``concurrency`` at a time.

    Chunks are processed in sequential batches; a batch only starts once the
    previous one has completely finished. ``results[i]`` always belongs to
    ``chunks[i]``. If any chunk in a batch fails for good, the rest of the
    batch is cancelled and the error propagates; nothing partial is returned.
    """
    concurrency = options.concurrency if concurrency is None else concurrency
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    total = len(chunks)
    results: list[str] = [""] * total
    completed = 0

    async def run(index: int) -> None:
        nonlocal completed
        translated = await translate_chunk_with_retry(
            backend, chunks[index], index, options, cancel_token, on_progress
        )
        results[index] = translated
        completed += 1
        _emit(
            on_progress,
            ChunkProgress(
                done=completed, total=total, message=f"{completed}/{total} chunks done"
            ),
        )

    for start in range(0, total, concurrency):
        check_cancelled(cancel_token)
        batch = range(start, min(start + concurrency, total))
        await _run_batch([run(index) for index in batch])

    return results


async def translate_full(
    backend: TranslationBackend,
    chunks: list[str],
    options: TranslationOptions,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[str]:
    """Translate every chunk of a document; see translate_parallel."""
    if not chunks:
        return []

    logger.info(
        "Translating %d chunks to %s with %s (%s)",
        len(chunks),
        options.target_lang,
        backend.name,
        backend.model,
    )
    _emit(
        on_progress,
        ChunkProgress(
            done=0,
            total=len(chunks),
            message=f"Translating {len(chunks)} chunks in parallel...",
        ),
    )
    return await translate_parallel(
        backend, chunks, options, cancel_token, on_progress
    )
