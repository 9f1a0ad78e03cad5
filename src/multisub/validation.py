"""Structural validation of translated chunks against their source."""

from typing import NamedTuple

from .models import ValidationResult
from .srt import BLOCK_SPLIT_RE, normalize_newlines, parse_index


class BlockInfo(NamedTuple):
    index: int
    timecode: str


def extract_block_infos(text: str) -> list[BlockInfo]:
    """Collect (index, timecode line) pairs from SRT text.

    Uses the same block splitting as the parser. Blocks with fewer than two
    lines or without a numeric first line are left out; the timecode line is
    taken as-is (trimmed) so any change to it is detected on comparison.
    """
    normalized = normalize_newlines(text)
    if not normalized:
        return []

    infos = []
    for raw_block in BLOCK_SPLIT_RE.split(normalized):
        lines = raw_block.strip().split("\n")
        if len(lines) < 2:
            continue
        index = parse_index(lines[0])
        if index is None:
            continue
        infos.append(BlockInfo(index, lines[1].strip()))
    return infos


def validate_translation(input_text: str, output_text: str) -> ValidationResult:
    """Check that a translation kept block count, indices and timecodes.

    A block count mismatch is reported alone, since positional comparison
    is meaningless once blocks were dropped or merged. Otherwise every
    position is checked for an identical index and an identical timecode
    line.
    """
    expected = extract_block_infos(input_text)
    actual = extract_block_infos(output_text)

    if len(expected) != len(actual):
        return ValidationResult(
            valid=False,
            errors=[
                f"Block count mismatch: expected {len(expected)}, got {len(actual)}"
            ],
        )

    errors = []
    for position, (want, got) in enumerate(zip(expected, actual)):
        if want.index != got.index:
            errors.append(
                f"Block {position}: index mismatch "
                f"(expected {want.index}, got {got.index})"
            )
        if want.timecode != got.timecode:
            errors.append(
                f"Block {want.index}: timecode mismatch "
                f"(expected {want.timecode!r}, got {got.timecode!r})"
            )

    return ValidationResult(valid=not errors, errors=errors)
