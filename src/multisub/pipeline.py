"""Whole-document translation: Korean -> English -> further languages."""

import asyncio
import logging
from dataclasses import replace
from typing import Literal

from pydantic import BaseModel, Field

from .backends import TranslationBackend
from .cancellation import CancellationToken, check_cancelled
from .chunker import (
    DEFAULT_DIALOGUE_GAP_MS,
    DEFAULT_MAX_BLOCKS,
    DEFAULT_MAX_TOKENS,
    create_chunks,
    get_chunk_summary,
)
from .dictionary import fill_language_terminology
from .errors import TranslationCancelled, TranslationError
from .languages import get_file_code, get_language_name
from .models import SubtitleBlock, Terminology
from .repair import fix_empty_blocks
from .srt import blocks_to_srt, parse_srt, reassemble
from .terminology import for_language
from .translate import (
    ProgressCallback,
    StatusCallback,
    TranslationOptions,
    translate_full,
)

logger = logging.getLogger(__name__)

LANGUAGE_RETRIES = 5
LANGUAGE_RETRY_DELAY = 2.0  # seconds, multiplied by the attempt number
LANGUAGE_RETRY_MAX_DELAY = 10.0


class ChunkingSettings(BaseModel):
    max_blocks: int = DEFAULT_MAX_BLOCKS
    max_tokens: int = DEFAULT_MAX_TOKENS
    dialogue_gap_ms: int = DEFAULT_DIALOGUE_GAP_MS


class LanguageResult(BaseModel):
    """Outcome of translating the document into one language."""

    lang_code: str
    file_code: str
    status: Literal["done", "failed"]
    attempts: int
    blocks: list[SubtitleBlock] = Field(default_factory=list)
    error: str | None = None

    @property
    def srt(self) -> str:
        return blocks_to_srt(self.blocks)


class DocumentTranslation(BaseModel):
    source_blocks: list[SubtitleBlock]
    english_blocks: list[SubtitleBlock]
    results: dict[str, LanguageResult] = Field(default_factory=dict)
    # input terminology plus the term and rule translations made for this job
    terminology: Terminology = Field(default_factory=Terminology)

    @property
    def failed_languages(self) -> list[str]:
        return [code for code, r in self.results.items() if r.status == "failed"]


def language_retry_delay(
    attempt: int,
    base: float = LANGUAGE_RETRY_DELAY,
    cap: float = LANGUAGE_RETRY_MAX_DELAY,
) -> float:
    return min(base * attempt, cap)


async def translate_blocks(
    blocks: list[SubtitleBlock],
    backend: TranslationBackend,
    options: TranslationOptions,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    chunking: ChunkingSettings | None = None,
) -> list[SubtitleBlock]:
    """Chunk, translate and reassemble a block list.

    The result always has one block per input block with the input's
    indices and timecodes.
    """
    chunking = chunking or ChunkingSettings()
    chunks = create_chunks(
        blocks, chunking.max_blocks, chunking.max_tokens, chunking.dialogue_gap_ms
    )
    logger.info("%s: %s", options.target_lang, get_chunk_summary(chunks))

    translated = await translate_full(
        backend, [chunk.text for chunk in chunks], options, cancel_token, on_progress
    )
    return reassemble(blocks, translated)


async def translate_language(
    english_blocks: list[SubtitleBlock],
    lang_code: str,
    backend: TranslationBackend,
    options: TranslationOptions,
    retries: int = LANGUAGE_RETRIES,
    retry_delay: float = LANGUAGE_RETRY_DELAY,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    on_status: StatusCallback | None = None,
    chunking: ChunkingSettings | None = None,
) -> LanguageResult:
    """Translate English blocks into one language, retrying the whole pass.

    A pass that still fails after ``retries`` attempts is reported as a
    failed LanguageResult instead of raising. Cancellation always raises.
    """
    lang_options = replace(
        options,
        source_lang="en",
        target_lang=lang_code,
        terminology=for_language(options.terminology, lang_code),
        custom_style=None,
        feedback_notes=None,
    )
    lang_name = get_language_name(lang_code)
    last_error: TranslationError | None = None

    for attempt in range(1, retries + 1):
        check_cancelled(cancel_token)
        if on_status:
            suffix = f" (retry {attempt}/{retries})" if attempt > 1 else ""
            on_status(f"{lang_name}: translating{suffix}")

        try:
            blocks = await translate_blocks(
                english_blocks, backend, lang_options, cancel_token, on_progress, chunking
            )
        except TranslationCancelled:
            raise
        except TranslationError as e:
            last_error = e
            logger.error("%s translation failed (attempt %d): %s", lang_name, attempt, e)
            if attempt < retries:
                wait = language_retry_delay(attempt, retry_delay)
                if on_status:
                    on_status(f"{lang_name} failed, retrying in {wait:g}s")
                await asyncio.sleep(wait)
            continue

        return LanguageResult(
            lang_code=lang_code,
            file_code=get_file_code(lang_code),
            status="done",
            attempts=attempt,
            blocks=blocks,
        )

    return LanguageResult(
        lang_code=lang_code,
        file_code=get_file_code(lang_code),
        status="failed",
        attempts=retries,
        error=str(last_error) if last_error else None,
    )


async def translate_document(
    source_srt: str,
    target_langs: list[str],
    backend: TranslationBackend,
    options: TranslationOptions | None = None,
    multilang_backend: TranslationBackend | None = None,
    source_lang: str = "ko",
    language_retries: int = LANGUAGE_RETRIES,
    language_retry_base: float = LANGUAGE_RETRY_DELAY,
    fix_empty: bool = False,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
    on_status: StatusCallback | None = None,
    chunking: ChunkingSettings | None = None,
) -> DocumentTranslation:
    """Translate a subtitle document into every requested language.

    Korean sources are first translated to English; every other language is
    then translated from that English text, one language at a time. The
    English pass is required, so its failure is raised. Other languages that
    keep failing are recorded as failed while the rest continue.

    Before each English -> X pass, terms and rules that have no X
    translation yet are translated and added to ``document.terminology``.

    Args:
        source_srt: Raw SRT text of the source document
        target_langs: Language codes to produce ("en" included or not)
        backend: Backend for the Korean -> English pass
        options: Terminology, style and retry tunables
        multilang_backend: Backend for English -> X passes (default: backend)
        source_lang: "ko" or "en"
        language_retries: Whole-pass attempts per non-English language
        language_retry_base: Base wait between those attempts, in seconds
        fix_empty: Repair empty English blocks after the Korean pass
        cancel_token: Optional cancellation token
        on_progress: Receives chunk progress and retry-wait events
        on_status: Receives human readable status lines
        chunking: Chunk size settings

    Raises:
        TranslationCancelled: the token was set
        TranslationError: the English pass failed
    """
    options = options or TranslationOptions()
    multilang_backend = multilang_backend or backend

    source_blocks = parse_srt(source_srt)
    logger.info("Parsed %d source blocks", len(source_blocks))

    if source_lang == "en":
        english_blocks = source_blocks
    else:
        if on_status:
            on_status("English: translating from Korean")
        english_options = replace(options, source_lang=source_lang, target_lang="en")
        english_blocks = await translate_blocks(
            source_blocks, backend, english_options, cancel_token, on_progress, chunking
        )
        if fix_empty:
            english_blocks = await fix_empty_blocks(
                english_blocks, source_blocks, backend, cancel_token, on_progress
            )

    document = DocumentTranslation(
        source_blocks=source_blocks,
        english_blocks=english_blocks,
        terminology=options.terminology,
    )
    if "en" in target_langs:
        document.results["en"] = LanguageResult(
            lang_code="en",
            file_code=get_file_code("en"),
            status="done",
            attempts=1,
            blocks=english_blocks,
        )

    others = [code for code in dict.fromkeys(target_langs) if code != "en"]
    for i, lang_code in enumerate(others, start=1):
        check_cancelled(cancel_token)
        logger.info("[%d/%d] %s", i, len(others), get_language_name(lang_code))
        document.terminology = await fill_language_terminology(
            document.terminology, lang_code, multilang_backend, cancel_token, on_status
        )
        document.results[lang_code] = await translate_language(
            english_blocks,
            lang_code,
            multilang_backend,
            replace(options, terminology=document.terminology),
            retries=language_retries,
            retry_delay=language_retry_base,
            cancel_token=cancel_token,
            on_progress=on_progress,
            on_status=on_status,
            chunking=chunking,
        )

    return document
