"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from conftest import FakeBackend, make_blocks, translate_payload
from multisub import config as config_module
from multisub.cli import main
from multisub.srt import blocks_to_srt, read_srt
from multisub.terminology import load_terminology


def responder(system_prompt, payload, call):
    if "terminology translator" in system_prompt:
        return '[{"index": 1, "translation": "sous-titre"}]'
    if "Korean → English" in system_prompt:
        return translate_payload(payload, "EN")
    if "Deutsch" in system_prompt:
        return RuntimeError("service down")
    return translate_payload(payload, "FR")


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("MULTISUB_MULTILANG_MODEL", raising=False)
    monkeypatch.setenv("MULTISUB_MAX_ATTEMPTS", "1")
    monkeypatch.setenv("MULTISUB_LANGUAGE_RETRIES", "1")


@pytest.fixture
def fake_backends(monkeypatch):
    created = []

    def factory(provider, config, model=None):
        backend = FakeBackend(responder)
        created.append((provider, model, backend))
        return backend

    monkeypatch.setattr("multisub.cli.create_backend", factory)
    return created


@pytest.fixture
def episode(tmp_path):
    path = tmp_path / "episode.srt"
    path.write_text(blocks_to_srt(make_blocks(4)) + "\n", encoding="utf-8")
    return path


def test_translates_to_each_language(episode, tmp_path, fake_backends):
    out_dir = tmp_path / "out"
    result = CliRunner().invoke(
        main, [str(episode), "--to", "en,fr", "-o", str(out_dir), "--model", "m1"]
    )
    assert result.exit_code == 0, result.output
    assert "Done!" in result.output

    english = read_srt(out_dir / "[ENG]_episode.srt")
    french = read_srt(out_dir / "[FRA]_episode.srt")
    assert [b.text for b in english] == ["EN 1", "EN 2", "EN 3", "EN 4"]
    assert [b.text for b in french] == ["FR 1", "FR 2", "FR 3", "FR 4"]
    assert [b.start_time for b in french] == [b.start_time for b in make_blocks(4)]
    assert [(p, m) for p, m, _ in fake_backends] == [("openai", "m1"), ("openai", "m1")]


def test_output_defaults_to_input_directory(episode, fake_backends):
    result = CliRunner().invoke(main, [str(episode), "--to", "en"])
    assert result.exit_code == 0, result.output
    assert (episode.parent / "[ENG]_episode.srt").exists()


def test_failed_language_is_reported(episode, tmp_path, fake_backends):
    result = CliRunner().invoke(
        main, [str(episode), "--to", "en", "--to", "de", "-o", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    assert "1 done, 1 failed (Deutsch (German))" in result.output
    assert (tmp_path / "[ENG]_episode.srt").exists()
    assert not (tmp_path / "[DEU]_episode.srt").exists()


def test_all_languages_failed(episode, tmp_path, fake_backends):
    result = CliRunner().invoke(main, [str(episode), "--to", "de", "-o", str(tmp_path)])
    assert result.exit_code == 1


def test_input_without_blocks(tmp_path, fake_backends):
    path = tmp_path / "empty.srt"
    path.write_text("just some text\n", encoding="utf-8")
    result = CliRunner().invoke(main, [str(path), "--to", "en"])
    assert result.exit_code == 1
    assert "No subtitle blocks found" in result.output


def test_missing_api_key(episode):
    result = CliRunner().invoke(main, [str(episode), "--to", "en"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY environment variable required for openai" in result.output


def test_terminology_file(episode, tmp_path, fake_backends):
    terms = tmp_path / "terms.json"
    terms.write_text('{"terms": {"자막": "subtitle"}}', encoding="utf-8")
    result = CliRunner().invoke(
        main, [str(episode), "--to", "en", "--terminology", str(terms), "-o", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    backend = fake_backends[0][2]
    assert "- 자막 → subtitle" in backend.system_prompts[0]


@pytest.mark.parametrize("value", ["abc", "0"])
def test_bad_tunable_is_reported(episode, monkeypatch, fake_backends, value):
    monkeypatch.setenv("MULTISUB_CONCURRENCY", value)
    result = CliRunner().invoke(main, [str(episode), "--to", "en"])
    assert result.exit_code == 1
    assert "MULTISUB_CONCURRENCY" in result.output
    assert isinstance(result.exception, SystemExit)
    assert fake_backends == []


def test_multilang_model_from_env(episode, tmp_path, monkeypatch, fake_backends):
    monkeypatch.setenv("MULTISUB_MULTILANG_MODEL", "m-multi")
    result = CliRunner().invoke(
        main, [str(episode), "--to", "fr", "-o", str(tmp_path), "--model", "m1"]
    )
    assert result.exit_code == 0, result.output
    assert [(p, m) for p, m, _ in fake_backends] == [("openai", "m1"), ("openai", "m-multi")]


def test_multilang_model_option_wins(episode, tmp_path, monkeypatch, fake_backends):
    monkeypatch.setenv("MULTISUB_MULTILANG_MODEL", "m-multi")
    result = CliRunner().invoke(
        main, [str(episode), "--to", "fr", "-o", str(tmp_path), "--multilang-model", "m2"]
    )
    assert result.exit_code == 0, result.output
    assert [(p, m) for p, m, _ in fake_backends] == [("openai", None), ("openai", "m2")]


def test_save_terminology_keeps_new_translations(episode, tmp_path, fake_backends):
    terms = tmp_path / "terms.json"
    terms.write_text('{"terms": {"자막": "subtitle"}}', encoding="utf-8")
    saved = tmp_path / "saved.json"
    result = CliRunner().invoke(
        main,
        [
            str(episode),
            "--to",
            "fr",
            "--terminology",
            str(terms),
            "--save-terminology",
            str(saved),
            "-o",
            str(tmp_path),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Français (French): translating 1 terms and 0 expressions" in result.output
    terminology = load_terminology(saved)
    assert terminology.terms == {"자막": "subtitle"}
    assert terminology.multilang == {"fr": {"subtitle": "sous-titre"}}
    multilang_backend = fake_backends[1][2]
    assert "- subtitle → sous-titre" in multilang_backend.system_prompts[-1]
