"""Clean-up of raw model output before it is validated as SRT."""

import re

from .srt import BLOCK_SPLIT_RE, TIMECODE_RE, parse_index

QUOTE_MAP = str.maketrans(
    {
        "\u2018": "'",
        "\u2019": "'",
        "\u201a": "'",
        "\u201b": "'",
        "\u201c": '"',
        "\u201d": '"',
        "\u201e": '"',
        "\u201f": '"',
        "\u00ab": '"',
        "\u00bb": '"',
    }
)

# Inner content is kept; the bold/underline forms must run before the single ones.
MARKUP_PATTERNS = [
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"__(.+?)__"), r"\1"),
    (re.compile(r"_(.+?)_"), r"\1"),
    (re.compile(r"~~(.+?)~~"), r"\1"),
    (re.compile(r"`(.+?)`"), r"\1"),
    # Tags never span lines, so a stray "<" cannot reach the next "-->".
    (re.compile(r"</?[A-Za-z][^<>\n]*>"), ""),
]

UNICODE_SPACE_RE = re.compile(r"[\u00a0\u2000-\u200b\u202f\u205f\u3000]")
HORIZONTAL_SPACE_RE = re.compile(r"[ \t]+")
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
CODE_FENCE_RE = re.compile(r"```(?:[A-Za-z][\w-]*)?\s*([\s\S]*?)```")


def _strip_markup(text: str) -> str:
    # Removing one construct can expose another, e.g. "*<i>*x*</i>".
    while True:
        stripped = text
        for pattern, replacement in MARKUP_PATTERNS:
            stripped = pattern.sub(replacement, stripped)
        if stripped == text:
            return text
        text = stripped


def normalize_text(text: str) -> str:
    """Remove characters from model output that break SRT rendering.

    Straightens typographic quotes, strips markdown and HTML markup (keeping
    the wrapped text), turns exotic Unicode spaces into ASCII spaces, drops
    byte-order marks, collapses runs of spaces and of blank lines and trims
    every line. Applying it twice gives the same result as applying it once.
    """
    result = text.replace("\r\n", "\n").replace("\r", "\n").replace("\ufeff", "")
    result = UNICODE_SPACE_RE.sub(" ", result)
    result = result.translate(QUOTE_MAP)
    result = _strip_markup(result)
    result = HORIZONTAL_SPACE_RE.sub(" ", result)
    result = "\n".join(line.strip() for line in result.split("\n"))
    result = EXCESS_NEWLINES_RE.sub("\n\n", result)
    return result.strip()


def extract_code_block(response: str) -> str:
    """Return the content of the first fenced code block, or the response."""
    match = CODE_FENCE_RE.search(response)
    return match.group(1) if match else response


def is_srt_block(block: str) -> bool:
    """Check that a raw block starts with an index line and a timecode line."""
    lines = block.split("\n")
    if len(lines) < 2:
        return False
    return parse_index(lines[0]) is not None and bool(TIMECODE_RE.search(lines[1]))


def normalize_srt_response(response: str) -> str:
    """Extract the SRT payload from a model response.

    Unwraps a fenced code block if there is one, normalizes the text and
    drops every blank-line separated piece that is not an SRT block, such as
    commentary the model put before or after the subtitles.
    """
    text = normalize_text(extract_code_block(response))
    blocks = (block.strip() for block in BLOCK_SPLIT_RE.split(text))
    return "\n\n".join(block for block in blocks if is_srt_block(block))


def fix_json(text: str) -> str:
    """Extract the JSON object or array from an LLM answer."""
    # Remove markdown code blocks
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"^```\s*$", "", text, flags=re.MULTILINE)

    match = re.search(r"[\[{].*[\]}]", text, re.DOTALL)
    if not match:
        raise ValueError("Could not find JSON in response")

    # Trailing commas before } or ]
    return re.sub(r",\s*([}\]])", r"\1", match.group())
