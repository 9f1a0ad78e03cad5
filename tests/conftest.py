"""Shared helpers: an in-memory backend and SRT builders."""

import asyncio
import inspect

import pytest

from multisub.backends import TranslationBackend
from multisub.cancellation import check_cancelled
from multisub.models import SubtitleBlock, ms_to_time
from multisub.srt import blocks_to_srt, parse_srt


class FakeBackend(TranslationBackend):
    """Backend whose answers come from a plain function.

    ``responder(system_prompt, payload, call_number)`` returns the completion
    text or an exception instance to raise. It may be a coroutine function.
    """

    name = "fake"
    model = "fake-model"

    def __init__(self, responder, delay=None):
        self.responder = responder
        self.delay = delay
        self.calls: list[str] = []
        self.system_prompts: list[str] = []

    async def complete(self, system_prompt, messages, user_payload, cancel_token=None):
        check_cancelled(cancel_token)
        self.calls.append(user_payload)
        self.system_prompts.append(system_prompt)
        if self.delay:
            await asyncio.sleep(self.delay(user_payload))
        result = self.responder(system_prompt, user_payload, len(self.calls))
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result


def make_blocks(count, texts=None, duration_ms=1000, gap_ms=500, gaps=None, start_index=1):
    """Build consecutive blocks; ``gaps`` maps a block index to the pause before it."""
    blocks = []
    cursor = 1000
    for i in range(count):
        index = start_index + i
        if i:
            cursor += (gaps or {}).get(index, gap_ms)
        text = texts[i] if texts else f"자막 {index}"
        blocks.append(
            SubtitleBlock(
                index=index,
                start_time=ms_to_time(cursor),
                end_time=ms_to_time(cursor + duration_ms),
                text=text,
            )
        )
        cursor += duration_ms
    return blocks


def translate_payload(payload: str, prefix: str = "EN") -> str:
    """A well-behaved translation: same structure, text replaced."""
    blocks = parse_srt(payload)
    return blocks_to_srt([b.with_text(f"{prefix} {b.index}") for b in blocks])


def echo_translation(prefix="EN"):
    def responder(system_prompt, payload, call):
        return translate_payload(payload, prefix)

    return responder


@pytest.fixture
def sample_blocks():
    return make_blocks(5)


@pytest.fixture
def sample_srt(sample_blocks):
    return blocks_to_srt(sample_blocks)
