"""Translation of dictionary terms and channel rules into further languages.

Before an English -> X pass, every term and rule that has an English form
but no X form yet is sent to the backend in one request, and the answers
are stored in the terminology's ``multilang`` and ``multilang_rules``
tables so that pass (and later jobs, once exported) can use them.
"""

import json
import logging

from .backends import TranslationBackend
from .cancellation import CancellationToken, check_cancelled
from .errors import BackendError
from .languages import get_language_name
from .models import Terminology
from .normalizer import fix_json
from .terminology import (
    add_multilang_rule,
    add_multilang_term,
    rules_needing_translation,
    terms_needing_translation,
)
from .translate import StatusCallback

logger = logging.getLogger(__name__)

TERMS_USER_PAYLOAD = "Please translate the terms listed above."


def terms_system_prompt(entries: list[tuple[str, str]], lang_code: str) -> str:
    lang_name = get_language_name(lang_code)
    listing = "\n".join(
        f'{i}. "{english}" (Korean: {korean})'
        for i, (korean, english) in enumerate(entries, start=1)
    )
    return f"""You are a specialized terminology translator for crafting/knitting/crochet content.

## Task
Translate the following English terms to {lang_name}. These are technical terms used in crafting tutorials.

## Terms to translate:
{listing}

## Output Format
Return ONLY a JSON array with translations:
[
  {{"index": 1, "translation": "translated term"}},
  {{"index": 2, "translation": "translated term"}},
  ...
]

## Rules
1. Translate technical terms accurately for the crafting context
2. Keep translations natural in {lang_name}
3. If a term doesn't have a direct equivalent, use the most commonly used expression in {lang_name}
4. Return ONLY the JSON array, no explanations"""


def parse_term_translations(
    response: str, entries: list[tuple[str, str]]
) -> dict[str, str]:
    """Map each entry's English text to its translation.

    Accepts a JSON array of {"index", "translation"} items, or an object
    holding that array under "translations". Items with an unknown index or
    an empty translation are ignored.

    Raises:
        ValueError: the answer holds no such JSON
    """
    try:
        data = json.loads(fix_json(response))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {e}") from e

    if isinstance(data, dict):
        data = data.get("translations", [])
    if not isinstance(data, list):
        raise ValueError("Response is not a list of translations")

    result = {}
    for item in data:
        if not isinstance(item, dict):
            continue
        index = item.get("index")
        translation = item.get("translation")
        if not isinstance(index, int) or not 1 <= index <= len(entries):
            continue
        if not isinstance(translation, str) or not translation.strip():
            continue
        result[entries[index - 1][1]] = translation.strip()
    return result


async def translate_dictionary_terms(
    backend: TranslationBackend,
    entries: list[tuple[str, str]],
    lang_code: str,
    cancel_token: CancellationToken | None = None,
) -> dict[str, str]:
    """Translate (Korean, English) entries from English into lang_code.

    Returns English -> translation for the entries the backend answered.
    A failed call or an unreadable answer is logged and gives {}.
    Cancellation propagates.
    """
    if not entries:
        return {}

    check_cancelled(cancel_token)
    logger.info("Translating %d dictionary entries to %s", len(entries), lang_code)
    try:
        response = await backend.complete(
            terms_system_prompt(entries, lang_code), None, TERMS_USER_PAYLOAD, cancel_token
        )
        check_cancelled(cancel_token)
        translations = parse_term_translations(response, entries)
    except (BackendError, ValueError) as e:
        logger.error("Dictionary translation to %s failed: %s", lang_code, e)
        return {}

    logger.info("Got %d/%d dictionary translations", len(translations), len(entries))
    return translations


async def fill_language_terminology(
    terminology: Terminology,
    lang_code: str,
    backend: TranslationBackend,
    cancel_token: CancellationToken | None = None,
    on_status: StatusCallback | None = None,
) -> Terminology:
    """Return terminology with missing lang_code terms and rules translated."""
    if lang_code == "en":
        return terminology

    terms = terms_needing_translation(terminology, lang_code)
    rules = rules_needing_translation(terminology, lang_code)
    if not terms and not rules:
        return terminology

    if on_status:
        on_status(
            f"{get_language_name(lang_code)}: translating {len(terms)} terms "
            f"and {len(rules)} expressions"
        )

    for english, translation in (
        await translate_dictionary_terms(backend, terms, lang_code, cancel_token)
    ).items():
        terminology = add_multilang_term(terminology, lang_code, english, translation)

    for english, translation in (
        await translate_dictionary_terms(backend, rules, lang_code, cancel_token)
    ).items():
        terminology = add_multilang_rule(terminology, lang_code, english, translation)

    return terminology
