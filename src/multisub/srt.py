"""SRT subtitle parsing, generation and reassembly."""

import re
from pathlib import Path

from .models import SubtitleBlock, ms_to_time, time_to_ms

__all__ = [
    "BLOCK_SPLIT_RE",
    "INDEX_RE",
    "TIMECODE_RE",
    "apply_translation_to_blocks",
    "blocks_to_srt",
    "chunk_srt_blocks",
    "merge_translated_chunks",
    "ms_to_time",
    "normalize_newlines",
    "parse_index",
    "parse_srt",
    "read_srt",
    "reassemble",
    "time_to_ms",
    "write_srt",
]

# One or more blank lines separate blocks.
BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
INDEX_RE = re.compile(r"^\s*(\d+)")
TIMECODE_RE = re.compile(
    r"(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})"
)


def normalize_newlines(content: str) -> str:
    """Drop a leading BOM, convert CRLF/CR line endings to LF and trim."""
    return (
        content.lstrip("\ufeff")
        .replace("\r\n", "\n")
        .replace("\r", "\n")
        .strip()
    )


def parse_index(line: str) -> int | None:
    """Parse the leading integer of a block's first line, or None."""
    match = INDEX_RE.match(line)
    return int(match.group(1)) if match else None


def parse_srt(content: str) -> list[SubtitleBlock]:
    """Parse SRT content into SubtitleBlock objects.

    Malformed blocks (fewer than two lines, a non-numeric index line or a
    missing timecode line) are skipped, so the result may be shorter than
    the number of raw blocks in the input.

    Args:
        content: Raw SRT file content

    Returns:
        List of SubtitleBlock objects in input order
    """
    normalized = normalize_newlines(content)
    if not normalized:
        return []

    blocks = []
    for raw_block in BLOCK_SPLIT_RE.split(normalized):
        lines = raw_block.strip().split("\n")
        if len(lines) < 2:
            continue

        index = parse_index(lines[0])
        if index is None:
            continue

        match = TIMECODE_RE.search(lines[1])
        if not match:
            continue

        blocks.append(
            SubtitleBlock(
                index=index,
                start_time=match.group(1),
                end_time=match.group(2),
                text="\n".join(lines[2:]),
            )
        )

    return blocks


def blocks_to_srt(blocks: list[SubtitleBlock]) -> str:
    """Convert blocks to an SRT string.

    Args:
        blocks: List of SubtitleBlock objects

    Returns:
        SRT formatted string, blocks separated by one blank line
    """
    return "\n\n".join(block.to_srt_block() for block in blocks)


def read_srt(path: str | Path) -> list[SubtitleBlock]:
    """Read and parse an SRT file.

    Args:
        path: Path to the SRT file

    Returns:
        List of SubtitleBlock objects
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8-sig")
    return parse_srt(content)


def write_srt(blocks: list[SubtitleBlock], path: str | Path) -> None:
    """Write blocks to an SRT file.

    Args:
        blocks: List of SubtitleBlock objects
        path: Output file path
    """
    path = Path(path)
    path.write_text(blocks_to_srt(blocks) + "\n", encoding="utf-8")


def chunk_srt_blocks(blocks: list[SubtitleBlock], chunk_size: int = 15) -> list[str]:
    """Split blocks into fixed-size SRT chunks, ignoring dialogue boundaries."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    return [
        blocks_to_srt(blocks[i : i + chunk_size])
        for i in range(0, len(blocks), chunk_size)
    ]


def merge_translated_chunks(chunks: list[str]) -> list[SubtitleBlock]:
    """Parse every chunk and return all blocks ordered by index."""
    merged = []
    for chunk in chunks:
        merged.extend(parse_srt(chunk))
    merged.sort(key=lambda block: block.index)
    return merged


def _translated_texts(chunks: list[str]) -> dict[int, str]:
    texts: dict[int, str] = {}
    for chunk in chunks:
        for block in parse_srt(chunk):
            texts[block.index] = block.text
    return texts


def reassemble(
    original_blocks: list[SubtitleBlock],
    translated_chunks: list[str],
) -> list[SubtitleBlock]:
    """Map translated chunk texts back onto the original block structure.

    Every translated chunk is parsed and its texts are collected into one
    index -> text map. The output has exactly one block per original block:
    the translated text when the map holds its index, the original text
    otherwise. Indices and timecodes always come from the original blocks,
    so timing survives any amount of damage in the translated chunks.

    Args:
        original_blocks: Authoritative blocks of the source document
        translated_chunks: Translated SRT text per chunk, in any order

    Returns:
        List of blocks aligned 1:1 with original_blocks
    """
    texts = _translated_texts(translated_chunks)
    return [
        block.with_text(texts[block.index]) if block.index in texts else block
        for block in original_blocks
    ]


def apply_translation_to_blocks(
    original_blocks: list[SubtitleBlock],
    translated_srt: str,
) -> list[SubtitleBlock]:
    """Reassemble from a single translated SRT document."""
    return reassemble(original_blocks, [translated_srt])
