"""Tests for terminology helpers and prompt rendering."""

import json

import pytest

from multisub.models import Terminology, TranslationRule
from multisub.prompts import create_system_prompt
from multisub.terminology import (
    add_multilang_rule,
    add_multilang_term,
    add_rule,
    add_term,
    export_terminology,
    for_language,
    get_all_rules,
    get_multilang_terms,
    import_terminology,
    load_terminology,
    remove_multilang_term,
    remove_rule,
    remove_term,
    rules_needing_translation,
    rules_to_prompt_text,
    terms_needing_translation,
    terms_to_prompt,
)


@pytest.fixture
def terminology():
    terms = add_term(Terminology(), "코바늘", "crochet hook")
    terms = add_term(terms, "겉뜨기", "knit stitch")
    terms = add_rule(terms, "뜨개왕", "Knit King", "creator nickname")
    return add_multilang_term(terms, "fr", "crochet hook", "crochet")


def test_helpers_do_not_mutate(terminology):
    add_term(terminology, "새", "new")
    remove_term(terminology, "코바늘")
    assert "새" not in terminology.terms
    assert "코바늘" in terminology.terms


def test_terms(terminology):
    assert remove_term(terminology, "코바늘").terms == {"겉뜨기": "knit stitch"}
    assert terms_to_prompt(terminology) == "- 코바늘 → crochet hook\n- 겉뜨기 → knit stitch"


def test_rules(terminology):
    assert add_rule(terminology, "뜨개왕", "Other") is terminology
    assert remove_rule(terminology, "뜨개왕").rules == []


def test_disabled_rules_are_skipped(terminology):
    disabled = terminology.model_copy(update={"disabled_rules": ["뜨개왕"]})
    assert get_all_rules(disabled) == []
    assert rules_to_prompt_text(disabled) == ""


def test_rules_prompt(terminology):
    text = rules_to_prompt_text(terminology)
    assert text.startswith("## Channel-Specific Expressions")
    assert '- "뜨개왕" → "Knit King" (creator nickname)' in text


def test_multilang_terms(terminology):
    assert get_multilang_terms(terminology, "fr") == {"crochet hook": "crochet"}
    assert get_multilang_terms(terminology, "de") == {}
    removed = remove_multilang_term(terminology, "fr", "crochet hook")
    assert get_multilang_terms(removed, "fr") == {}
    assert remove_multilang_term(terminology, "de", "x") is terminology


def test_for_language(terminology):
    assert for_language(terminology, "en") is terminology
    french = for_language(terminology, "fr")
    assert french.terms == {"crochet hook": "crochet"}
    assert french.rules == []
    assert for_language(terminology, "de") == Terminology()


def test_for_language_carries_translated_rules(terminology):
    translated = add_multilang_rule(terminology, "fr", "Knit King", "le Roi du Tricot")
    french = for_language(translated, "fr")
    assert french.rules == [
        TranslationRule(pattern="Knit King", replacement="le Roi du Tricot", description="creator nickname")
    ]
    assert for_language(translated, "de").rules == []
    disabled = translated.model_copy(update={"disabled_rules": ["뜨개왕"]})
    assert for_language(disabled, "fr").rules == []


def test_entries_needing_translation(terminology):
    same_english = add_term(terminology, "코바늘2", "crochet hook")
    assert terms_needing_translation(same_english, "fr") == [("겉뜨기", "knit stitch")]
    assert terms_needing_translation(same_english, "de") == [
        ("코바늘", "crochet hook"),
        ("겉뜨기", "knit stitch"),
    ]
    assert rules_needing_translation(terminology, "fr") == [("뜨개왕", "Knit King")]
    translated = add_multilang_rule(terminology, "fr", "Knit King", "le Roi du Tricot")
    assert rules_needing_translation(translated, "fr") == []
    assert translated.multilang_rules == {"fr": {"Knit King": "le Roi du Tricot"}}
    assert terminology.multilang_rules == {}


def test_export_import_round_trip(terminology):
    assert import_terminology(export_terminology(terminology)) == terminology


def test_import_legacy_layout():
    raw = json.dumps(
        {
            "knit": {"겉뜨기": "knit stitch"},
            "crochet": {"사슬뜨기": "chain stitch"},
            "rules": [{"pattern": "뜨개왕", "replacement": "Knit King"}],
            "disabledRules": ["뜨개왕"],
            "multilangRules": {"fr": {"Knit King": "le Roi du Tricot"}},
        }
    )
    terminology = import_terminology(raw)
    assert terminology.terms == {"겉뜨기": "knit stitch", "사슬뜨기": "chain stitch"}
    assert terminology.rules == [TranslationRule(pattern="뜨개왕", replacement="Knit King")]
    assert terminology.disabled_rules == ["뜨개왕"]
    assert terminology.multilang_rules == {"fr": {"Knit King": "le Roi du Tricot"}}


def test_import_rejects_non_object():
    with pytest.raises(ValueError):
        import_terminology("[1, 2]")
    with pytest.raises(ValueError):
        import_terminology("{broken")


def test_load_terminology(tmp_path, terminology):
    path = tmp_path / "terms.json"
    path.write_text(export_terminology(terminology), encoding="utf-8")
    assert load_terminology(path) == terminology


class TestSystemPrompt:
    def test_korean_prompt(self, terminology):
        prompt = create_system_prompt("en", terminology, from_korean=True, feedback_notes="Keep it short")
        assert "(Korean → English)" in prompt
        assert "## Terminology (use these exact terms):\n- 코바늘 → crochet hook" in prompt
        assert "## Context Hints:" in prompt
        assert "Keep it short" in prompt
        assert "OMIT KOREAN FILLER" in prompt
        assert "RULE 3: COPY TIMECODES CHARACTER BY CHARACTER" in prompt

    def test_custom_style_replaces_default(self):
        prompt = create_system_prompt("en", Terminology(), from_korean=True, custom_style="## My Style")
        assert "## My Style" in prompt
        assert "OMIT KOREAN FILLER" not in prompt
        assert "## Terminology" not in prompt

    def test_other_language_prompt(self):
        prompt = create_system_prompt("de", Terminology(terms={"hook": "Haken"}), from_korean=False)
        assert "(English → Deutsch (German))" in prompt
        assert "- hook → Haken" in prompt
        assert "[translated text in Deutsch (German)]" in prompt
