"""Data models for multisub."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def time_to_ms(timestamp: str) -> int:
    """Convert an SRT timestamp (HH:MM:SS,mmm) to milliseconds."""
    hours, minutes, rest = timestamp.split(":")
    seconds, millis = rest.split(",")
    return (
        int(hours) * 3_600_000
        + int(minutes) * 60_000
        + int(seconds) * 1000
        + int(millis)
    )


def ms_to_time(ms: int) -> str:
    """Format milliseconds as an SRT timestamp (HH:MM:SS,mmm)."""
    hours = ms // 3_600_000
    minutes = (ms % 3_600_000) // 60_000
    seconds = (ms % 60_000) // 1000
    millis = ms % 1000
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


class SubtitleBlock(BaseModel):
    """A single subtitle cue with timing and text."""

    model_config = ConfigDict(frozen=True)

    index: int
    start_time: str  # HH:MM:SS,mmm
    end_time: str  # HH:MM:SS,mmm
    text: str = ""

    @property
    def start_ms(self) -> int:
        return time_to_ms(self.start_time)

    @property
    def end_ms(self) -> int:
        return time_to_ms(self.end_time)

    @property
    def timecode(self) -> str:
        return f"{self.start_time} --> {self.end_time}"

    def with_text(self, text: str) -> "SubtitleBlock":
        """Return a copy of this block carrying different text."""
        return self.model_copy(update={"text": text})

    def to_srt_block(self) -> str:
        """Convert to SRT format block (no trailing blank line)."""
        return f"{self.index}\n{self.timecode}\n{self.text}"


class Chunk(BaseModel):
    """A contiguous run of blocks sent as one translation request."""

    blocks: list[SubtitleBlock]
    text: str
    token_count: int  # heuristic, see chunker.estimate_tokens


class TranslationRule(BaseModel):
    """A channel-specific expression and how it should be rendered."""

    pattern: str
    replacement: str
    description: str | None = None


class Terminology(BaseModel):
    """Term dictionary and custom rules supplied to each translation call."""

    terms: dict[str, str] = Field(default_factory=dict)
    rules: list[TranslationRule] = Field(default_factory=list)
    disabled_rules: list[str] = Field(default_factory=list)
    # language code -> English term -> target term
    multilang: dict[str, dict[str, str]] = Field(default_factory=dict)
    # language code -> English rule replacement -> target expression
    multilang_rules: dict[str, dict[str, str]] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Outcome of comparing a source chunk with a translated chunk."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class ChunkProgress(BaseModel):
    """A chunk finished translating."""

    kind: Literal["progress"] = "progress"
    done: int
    total: int
    message: str = ""

    @property
    def percent(self) -> float:
        return 100.0 * self.done / self.total if self.total else 0.0


class RetryWait(BaseModel):
    """A chunk failed and the orchestrator is sleeping before retrying it."""

    kind: Literal["retry"] = "retry"
    chunk_index: int
    attempt: int
    wait_ms: int
    message: str = ""


ProgressEvent = ChunkProgress | RetryWait


class LanguageInfo(BaseModel):
    """A target language known to the pipeline."""

    code: str
    name: str
    native_name: str
    korean_name: str
    file_code: str  # 3-letter tag used in output file names, e.g. ENG
    enabled: bool = True
