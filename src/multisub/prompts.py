"""System prompts for subtitle translation."""

from .languages import get_language_name
from .models import Terminology
from .terminology import rules_to_prompt_text, terms_to_prompt

STRUCTURE_RULES = """CRITICAL: your output is checked by a rule-based validator.
Output that breaks any rule below is rejected and you will be asked again.

RULE 1: BLOCK COUNT MUST BE IDENTICAL
- The input has N blocks, so the output must have exactly N blocks.
- Never merge, split, add or drop blocks.

RULE 2: COPY BLOCK NUMBERS EXACTLY
- Line 1 of each block is its number (e.g. "1", "2", "3").
- Copy it exactly. Do not change, skip or reorder numbers.

RULE 3: COPY TIMECODES CHARACTER BY CHARACTER
- Line 2 is the timecode (e.g. "00:00:01,000 --> 00:00:03,500").
- Copy the whole line as-is. Do not change a single digit or comma.

RULE 4: ONLY TRANSLATE LINE 3 AND BELOW
- Lines 3+ are the text to translate. This is the only part you may change."""

DEFAULT_KOREAN_STYLE = """## Translation Style:
- DIRECT & NATURAL: write how a native English speaker would say it
- SHORT SENTENCES: subtitles must be quick to read while watching
- CONVERSATIONAL TONE: friendly, like talking to the viewer
- OMIT KOREAN FILLER: skip verbal padding like "여기서", "이렇게", "보시면", "자"
- KEEP MEANING: don't add or remove information, just translate naturally

## Common Korean → English Patterns:
- "~하시면 됩니다" → direct statement or "You can..."
- "~할 거예요" → "We'll..." or "I'll..."
- "이제 ~해 볼게요" → "Now..." or "Let's..."
- "~거든요" → skip or rephrase naturally
- "네/예" at the start → usually skip"""

OUTPUT_FORMAT = """## OUTPUT FORMAT:

[block number - copied exactly]
[timecode - copied exactly]
[translated text{lang_suffix}]

[next block number]
[next timecode]
[next translated text]

...and so on for ALL blocks.

## FINAL CHECK BEFORE RESPONDING:
- Same number of blocks as the input?
- Every block number copied exactly?
- Every timecode copied exactly, character by character?
- Only the text translated?

Return ONLY the SRT output. No explanations. No markdown. No extra text."""


def _context_sections(
    terminology: Terminology,
    feedback_notes: str | None = None,
) -> str:
    sections = []
    terms = terms_to_prompt(terminology)
    if terms:
        sections.append(f"## Terminology (use these exact terms):\n{terms}")
    rules = rules_to_prompt_text(terminology)
    if rules:
        sections.append(f"## Context Hints:\n{rules}")
    if feedback_notes:
        sections.append(f"## Translator Notes (user feedback, important):\n{feedback_notes}")
    return "".join(section + "\n\n" for section in sections)


def create_system_prompt(
    target_lang: str,
    terminology: Terminology,
    from_korean: bool,
    custom_style: str | None = None,
    feedback_notes: str | None = None,
) -> str:
    """Build the system prompt for one translation pass.

    Args:
        target_lang: Target language code (or a free-form language name)
        terminology: Terms and rules to inject
        from_korean: True for the Korean -> English pass
        custom_style: Replaces the default Korean -> English style section
        feedback_notes: Extra notes from reviewers, Korean pass only
    """
    if from_korean:
        return (
            f"{STRUCTURE_RULES}\n\n"
            "You are translating YouTube video subtitles (Korean → English).\n\n"
            f"{_context_sections(terminology, feedback_notes)}"
            f"{custom_style or DEFAULT_KOREAN_STYLE}\n\n"
            f"{OUTPUT_FORMAT.format(lang_suffix='')}"
        )

    lang_name = get_language_name(target_lang)
    style = (
        "## Translation Style:\n"
        f"- Natural, conversational tone in {lang_name}\n"
        f"- Write how a native {lang_name} speaker would say it\n"
        "- Keep the friendly, informal video style"
    )
    return (
        f"{STRUCTURE_RULES}\n\n"
        f"You are translating YouTube video subtitles (English → {lang_name}).\n\n"
        f"{_context_sections(terminology)}"
        f"{style}\n\n"
        f"{OUTPUT_FORMAT.format(lang_suffix=f' in {lang_name}')}"
    )
