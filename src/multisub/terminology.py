"""Term dictionary and channel-expression rules.

All helpers return new Terminology objects; the one passed in is left
untouched, so a single instance can be shared by concurrent chunk calls.
"""

import json
from pathlib import Path

from .models import Terminology, TranslationRule


def add_term(terminology: Terminology, source: str, target: str) -> Terminology:
    return terminology.model_copy(
        update={"terms": {**terminology.terms, source: target}}
    )


def remove_term(terminology: Terminology, source: str) -> Terminology:
    terms = {k: v for k, v in terminology.terms.items() if k != source}
    return terminology.model_copy(update={"terms": terms})


def add_rule(
    terminology: Terminology,
    pattern: str,
    replacement: str,
    description: str | None = None,
) -> Terminology:
    """Add a rule unless one with the same pattern exists."""
    if any(rule.pattern == pattern for rule in terminology.rules):
        return terminology
    rule = TranslationRule(
        pattern=pattern, replacement=replacement, description=description
    )
    return terminology.model_copy(update={"rules": [*terminology.rules, rule]})


def remove_rule(terminology: Terminology, pattern: str) -> Terminology:
    rules = [rule for rule in terminology.rules if rule.pattern != pattern]
    return terminology.model_copy(update={"rules": rules})


def get_all_rules(terminology: Terminology) -> list[TranslationRule]:
    """Rules that are currently active."""
    disabled = set(terminology.disabled_rules)
    return [rule for rule in terminology.rules if rule.pattern not in disabled]


def add_multilang_term(
    terminology: Terminology,
    lang_code: str,
    english: str,
    translation: str,
) -> Terminology:
    lang_terms = {**terminology.multilang.get(lang_code, {}), english: translation}
    return terminology.model_copy(
        update={"multilang": {**terminology.multilang, lang_code: lang_terms}}
    )


def remove_multilang_term(
    terminology: Terminology,
    lang_code: str,
    english: str,
) -> Terminology:
    if lang_code not in terminology.multilang:
        return terminology
    lang_terms = {
        k: v for k, v in terminology.multilang[lang_code].items() if k != english
    }
    return terminology.model_copy(
        update={"multilang": {**terminology.multilang, lang_code: lang_terms}}
    )


def get_multilang_terms(terminology: Terminology, lang_code: str) -> dict[str, str]:
    return dict(terminology.multilang.get(lang_code, {}))


def add_multilang_rule(
    terminology: Terminology,
    lang_code: str,
    english: str,
    translation: str,
) -> Terminology:
    """Record the lang_code rendering of a rule's English replacement."""
    lang_rules = {**terminology.multilang_rules.get(lang_code, {}), english: translation}
    return terminology.model_copy(
        update={"multilang_rules": {**terminology.multilang_rules, lang_code: lang_rules}}
    )


def terms_needing_translation(
    terminology: Terminology, lang_code: str
) -> list[tuple[str, str]]:
    """(Korean, English) term pairs whose English has no lang_code translation yet."""
    known = terminology.multilang.get(lang_code, {})
    pending = {}
    for korean, english in terminology.terms.items():
        if english and english not in known and english not in pending:
            pending[english] = korean
    return [(korean, english) for english, korean in pending.items()]


def rules_needing_translation(
    terminology: Terminology, lang_code: str
) -> list[tuple[str, str]]:
    """(Korean pattern, English replacement) pairs of active, untranslated rules."""
    known = terminology.multilang_rules.get(lang_code, {})
    pending = {}
    for rule in get_all_rules(terminology):
        if rule.replacement and rule.replacement not in known and rule.replacement not in pending:
            pending[rule.replacement] = rule.pattern
    return [(korean, english) for english, korean in pending.items()]


def for_language(terminology: Terminology, lang_code: str) -> Terminology:
    """Terminology for an English -> lang_code pass.

    Once the source is English the Korean side no longer applies: terms
    become English -> target pairs from ``multilang``, and each active rule
    whose replacement has a ``multilang_rules`` translation becomes an
    English -> target rule. Entries without a translation are left out.
    """
    if lang_code == "en":
        return terminology

    rule_translations = terminology.multilang_rules.get(lang_code, {})
    rules = [
        TranslationRule(
            pattern=rule.replacement,
            replacement=rule_translations[rule.replacement],
            description=rule.description,
        )
        for rule in get_all_rules(terminology)
        if rule.replacement in rule_translations
    ]
    return Terminology(terms=get_multilang_terms(terminology, lang_code), rules=rules)


def terms_to_prompt(terminology: Terminology) -> str:
    """Render the term dictionary as prompt lines."""
    return "\n".join(
        f"- {source} → {target}" for source, target in terminology.terms.items()
    )


def rules_to_prompt_text(terminology: Terminology) -> str:
    """Render active rules as a prompt section, or "" when there are none."""
    rules = get_all_rules(terminology)
    if not rules:
        return ""

    lines = []
    for rule in rules:
        line = f'- "{rule.pattern}" → "{rule.replacement}"'
        if rule.description:
            line += f" ({rule.description})"
        lines.append(line)
    rules_list = "\n".join(lines)

    return f"""## Channel-Specific Expressions

The creator has defined these channel-specific expressions that their audience recognizes.
They are not literal translations: they are community memes or shorthand with a specific meaning on this channel.

{rules_list}

### How to handle these:

1. **Understand intent**: these expressions are usually nicknames for the creator or a mascot, community inside jokes, or shortened forms of longer phrases.
2. **Context matters**: only apply an expression when it is used on its own with its intended meaning. Do not apply it when the characters merely appear inside another word.
3. **Natural translation**: international viewers should get the same vibe as Korean viewers. If unsure, prefer natural phrasing over forced pattern matching."""


def _migrate(data: dict) -> Terminology:
    # Older exports kept terms in separate "knit" and "crochet" sections.
    terms = {
        **data.get("knit", {}),
        **data.get("crochet", {}),
        **data.get("terms", {}),
    }
    return Terminology(
        terms=terms,
        rules=data.get("rules") or [],
        disabled_rules=data.get("disabledRules") or data.get("disabled_rules") or [],
        multilang=data.get("multilang") or {},
        multilang_rules=data.get("multilangRules") or data.get("multilang_rules") or {},
    )


def export_terminology(terminology: Terminology) -> str:
    return terminology.model_dump_json(indent=2, exclude_none=True)


def import_terminology(raw: str) -> Terminology:
    """Parse exported terminology JSON, including the legacy layout.

    Raises:
        ValueError: the text is not a JSON object
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Terminology JSON must be an object")
    return _migrate(data)


def load_terminology(path: str | Path) -> Terminology:
    return import_terminology(Path(path).read_text(encoding="utf-8"))
