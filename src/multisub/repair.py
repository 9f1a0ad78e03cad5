"""Repair of blocks left empty by the Korean -> English pass.

Models sometimes merge two consecutive lines into one block and leave the
next block empty. The fix asks the backend to split the merged English text
back into two parts, using the Korean originals as a guide.
"""

import json
import logging

from .backends import TranslationBackend
from .cancellation import CancellationToken, check_cancelled
from .errors import BackendError
from .models import ChunkProgress, SubtitleBlock
from .normalizer import fix_json
from .translate import ProgressCallback

logger = logging.getLogger(__name__)

MIN_SPLITTABLE_LENGTH = 30

SPLIT_SYSTEM_PROMPT = """You are a subtitle text splitter.

## Task
The translation merged two subtitle lines into one. Split the text back into two parts.

## Input
- Combined English text (needs to be split)
- Original Korean texts for reference (two separate lines)

## Rules
1. Split the English text into TWO parts that align with the original Korean lines
2. Each part should be a complete, natural sentence
3. Maintain the original meaning
4. Return ONLY JSON: {"part1": "first part", "part2": "second part"}

## Example
Combined: "Hello everyone, today we'll learn about cooking."
Korean 1: "안녕하세요 여러분"
Korean 2: "오늘은 요리에 대해 배워볼게요"
Output: {"part1": "Hello everyone,", "part2": "today we'll learn about cooking."}"""


def parse_split_response(response: str) -> tuple[str, str]:
    """Return the two parts of a split answer.

    Raises:
        ValueError: the answer is not JSON with non-empty part1 and part2
    """
    try:
        data = json.loads(fix_json(response))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e

    part1 = data.get("part1") if isinstance(data, dict) else None
    part2 = data.get("part2") if isinstance(data, dict) else None
    if not isinstance(part1, str) or not isinstance(part2, str):
        raise ValueError("Response is missing part1/part2")
    if not part1.strip() or not part2.strip():
        raise ValueError("Response has an empty part")
    return part1.strip(), part2.strip()


def _split_payload(combined: str, first_korean: str, second_korean: str, empty_first: bool) -> str:
    first_label = "empty" if empty_first else "source"
    second_label = "source" if empty_first else "empty"
    return (
        f'Combined English: "{combined}"\n\n'
        f'Korean line 1 ({first_label}): "{first_korean}"\n'
        f'Korean line 2 ({second_label}): "{second_korean}"\n\n'
        "Split this into two parts."
    )


async def fix_empty_blocks(
    blocks: list[SubtitleBlock],
    original_blocks: list[SubtitleBlock],
    backend: TranslationBackend,
    cancel_token: CancellationToken | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[SubtitleBlock]:
    """Fill empty translated blocks by splitting a long neighbour.

    The previous block is split when its text is longer than 30 characters,
    otherwise the next one. Blocks without such a neighbour, and splits the
    backend fails to produce, are left as they are.

    Args:
        blocks: Translated blocks (English)
        original_blocks: Source blocks (Korean), matched by index
        backend: Completion backend to ask for the split
        cancel_token: Optional cancellation token
        on_progress: Optional progress callback

    Returns:
        A new block list of the same length and structure
    """
    result = list(blocks)
    korean = {block.index: block.text for block in original_blocks}

    empty_positions = [i for i, block in enumerate(result) if not block.text.strip()]
    if not empty_positions:
        logger.info("No empty blocks to fix")
        return result

    total = len(empty_positions)
    logger.info("Found %d empty blocks", total)
    fixed = 0

    for pos in empty_positions:
        check_cancelled(cancel_token)

        prev_block = result[pos - 1] if pos > 0 else None
        next_block = result[pos + 1] if pos + 1 < len(result) else None
        empty_block = result[pos]

        if prev_block and len(prev_block.text) > MIN_SPLITTABLE_LENGTH:
            source_pos, empty_first = pos - 1, False
            first, second = prev_block, empty_block
        elif next_block and len(next_block.text) > MIN_SPLITTABLE_LENGTH:
            source_pos, empty_first = pos + 1, True
            first, second = empty_block, next_block
        else:
            logger.info("Block %d: no neighbour to split", empty_block.index)
            continue

        payload = _split_payload(
            result[source_pos].text,
            korean.get(first.index, ""),
            korean.get(second.index, ""),
            empty_first,
        )
        try:
            response = await backend.complete(
                SPLIT_SYSTEM_PROMPT, None, payload, cancel_token
            )
            part1, part2 = parse_split_response(response)
        except (BackendError, ValueError) as e:
            logger.error("Block %d: split failed: %s", empty_block.index, e)
            continue

        first_pos, second_pos = (pos, source_pos) if empty_first else (source_pos, pos)
        result[first_pos] = result[first_pos].with_text(part1)
        result[second_pos] = result[second_pos].with_text(part2)
        fixed += 1
        logger.info("Block %d: split done", empty_block.index)

        if on_progress:
            on_progress(
                ChunkProgress(
                    done=fixed, total=total, message=f"Fixing empty blocks ({fixed}/{total})"
                )
            )

    logger.info("Fixed %d/%d empty blocks", fixed, total)
    return result
