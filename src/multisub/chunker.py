"""Dialogue-aware chunking of subtitle blocks for translation requests."""

import math
import re

from .models import Chunk, SubtitleBlock
from .srt import blocks_to_srt

HANGUL_RE = re.compile(r"[\uac00-\ud7af]")
LATIN_WORD_RE = re.compile(r"[a-zA-Z]+")
NUMBER_RE = re.compile(r"\d+")
LATIN_DIGIT_SPACE_RE = re.compile(r"[a-zA-Z\d\s]")

DEFAULT_MAX_BLOCKS = 10
DEFAULT_MAX_TOKENS = 2000
DEFAULT_DIALOGUE_GAP_MS = 2000


def estimate_tokens(text: str) -> int:
    """Roughly estimate the model tokens a piece of subtitle text costs.

    Hangul syllables count 2, Latin words 1.3, digit runs 0.5 and any other
    non-space character 1. This only bounds request size when chunking; it
    is not a billing figure.
    """
    hangul = len(HANGUL_RE.findall(text))
    words = len(LATIN_WORD_RE.findall(text))
    numbers = len(NUMBER_RE.findall(text))
    others = len(text) - hangul - len(LATIN_DIGIT_SPACE_RE.findall(text))
    return math.ceil(hangul * 2 + words * 1.3 + numbers * 0.5 + others)


def is_dialogue_boundary(
    prev: SubtitleBlock,
    curr: SubtitleBlock,
    gap_ms: int = DEFAULT_DIALOGUE_GAP_MS,
) -> bool:
    """Return True when the silence between two cues exceeds gap_ms."""
    return curr.start_ms - prev.end_ms > gap_ms


def _make_chunk(blocks: list[SubtitleBlock], tokens: int) -> Chunk:
    return Chunk(blocks=list(blocks), text=blocks_to_srt(blocks), token_count=tokens)


def create_chunks(
    blocks: list[SubtitleBlock],
    max_blocks: int = DEFAULT_MAX_BLOCKS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    dialogue_gap_ms: int = DEFAULT_DIALOGUE_GAP_MS,
) -> list[Chunk]:
    """Group blocks into translation chunks.

    A chunk is closed before a block when the pause since the previous cue
    is longer than dialogue_gap_ms and the chunk already holds at least two
    blocks, or when adding the block would go over max_tokens or the chunk
    already holds max_blocks blocks. An empty chunk is never closed, so an
    oversized block still gets a chunk of its own.

    Args:
        blocks: Subtitle blocks in document order
        max_blocks: Hard cap on blocks per chunk
        max_tokens: Soft cap on estimated tokens per chunk
        dialogue_gap_ms: Pause length treated as a change of conversation

    Returns:
        Chunks covering every block exactly once, in order
    """
    if max_blocks < 1:
        raise ValueError("max_blocks must be at least 1")

    chunks: list[Chunk] = []
    current: list[SubtitleBlock] = []
    current_tokens = 0

    for block in blocks:
        block_tokens = estimate_tokens(block.text)

        if current:
            dialogue_break = (
                len(current) >= 2
                and is_dialogue_boundary(current[-1], block, dialogue_gap_ms)
            )
            over_limit = (
                current_tokens + block_tokens > max_tokens
                or len(current) >= max_blocks
            )
            if dialogue_break or over_limit:
                chunks.append(_make_chunk(current, current_tokens))
                current = []
                current_tokens = 0

        current.append(block)
        current_tokens += block_tokens

    if current:
        chunks.append(_make_chunk(current, current_tokens))

    return chunks


def get_chunk_summary(chunks: list[Chunk]) -> str:
    """Describe a chunk list for status output."""
    total_blocks = sum(len(chunk.blocks) for chunk in chunks)
    total_tokens = sum(chunk.token_count for chunk in chunks)
    return f"{len(chunks)} chunks, {total_blocks} blocks, ~{total_tokens} tokens"
