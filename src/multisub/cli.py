"""CLI entry point for multisub."""

import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path

import click

from .backends import PROVIDERS, create_backend
from .cancellation import CancellationToken
from .config import Config
from .errors import ConfigurationError, TranslationCancelled, TranslationError
from .languages import get_language_name, output_filename
from .models import ChunkProgress, ProgressEvent, Terminology
from .pipeline import ChunkingSettings, translate_document
from .srt import parse_srt
from .terminology import export_terminology, load_terminology
from .translate import TranslationOptions


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _split_langs(values: tuple[str, ...]) -> list[str]:
    """Accept both "--to en --to fr" and "--to en,fr"."""
    langs = []
    for value in values:
        langs.extend(code.strip().lower() for code in value.split(",") if code.strip())
    return list(dict.fromkeys(langs))


def _on_progress(event: ProgressEvent) -> None:
    if isinstance(event, ChunkProgress):
        if event.done:
            click.echo(f"  {event.message} ({event.percent:.0f}%)")
    else:
        click.echo(f"  {event.message}")


def _read_optional(path: str | None) -> str | None:
    if path is None:
        return None
    return Path(path).read_text(encoding="utf-8").strip() or None


async def _run(document_kwargs: dict, token: CancellationToken):
    loop = asyncio.get_running_loop()
    # add_signal_handler is not available on Windows event loops
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    try:
        return await translate_document(cancel_token=token, **document_kwargs)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)


@click.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--to",
    "target_langs",
    multiple=True,
    required=True,
    help="Target language code(s), e.g. --to en --to fr or --to en,fr,de",
)
@click.option(
    "--from",
    "source_lang",
    type=click.Choice(["ko", "en"]),
    default="ko",
    show_default=True,
    help="Language of the input subtitles",
)
@click.option(
    "--llm",
    type=click.Choice(PROVIDERS),
    default="openai",
    show_default=True,
    help="LLM provider for translation",
)
@click.option("--model", default=None, help="Model for the Korean -> English pass")
@click.option(
    "--multilang-model",
    default=None,
    help="Model for English -> other language passes (default: --model)",
)
@click.option(
    "--terminology",
    "terminology_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Terminology JSON file (terms, rules, multilang)",
)
@click.option(
    "--save-terminology",
    "save_terminology_path",
    type=click.Path(dir_okay=False),
    help="Write the terminology, with the translations made for this run, to a JSON file",
)
@click.option(
    "--style",
    "style_path",
    type=click.Path(exists=True, dir_okay=False),
    help="File replacing the default Korean -> English style guide",
)
@click.option(
    "--notes",
    "notes_path",
    type=click.Path(exists=True, dir_okay=False),
    help="File with reviewer notes added to the Korean -> English prompt",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    help="Directory for translated files (default: next to the input)",
)
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Chunks translated at once")
@click.option("--max-retries", type=click.IntRange(min=1), default=None, help="Validation retries per chunk")
@click.option(
    "--strict",
    is_flag=True,
    help="Retry chunks that never pass validation instead of keeping the last answer",
)
@click.option(
    "--fix-empty",
    is_flag=True,
    help="Repair English blocks left empty by merged translations",
)
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug)")
def main(
    input_path: str,
    target_langs: tuple[str, ...],
    source_lang: str,
    llm: str,
    model: str | None,
    multilang_model: str | None,
    terminology_path: str | None,
    save_terminology_path: str | None,
    style_path: str | None,
    notes_path: str | None,
    output_dir: str | None,
    concurrency: int | None,
    max_retries: int | None,
    strict: bool,
    fix_empty: bool,
    verbose: int,
) -> None:
    """Translate Korean (or English) SRT subtitles into several languages.

    Korean input is translated to English first; every other language is
    translated from the English result.

    \b
    Examples:
      multisub episode.srt --to en
      multisub episode.srt --to en,fr,de --llm deepseek
      multisub episode.en.srt --from en --to ja --terminology terms.json
    """
    _configure_logging(verbose)

    langs = _split_langs(target_langs)
    if not langs:
        raise click.ClickException("At least one target language is required")

    try:
        config = Config.from_env()
        backend = create_backend(llm, config, model)
        multilang_backend = create_backend(
            llm, config, config.resolve_multilang_model(multilang_model, model)
        )
        terminology = (
            load_terminology(terminology_path) if terminology_path else Terminology()
        )
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))

    options = TranslationOptions(
        terminology=terminology,
        custom_style=_read_optional(style_path),
        feedback_notes=_read_optional(notes_path),
        max_retries=max_retries or config.max_retries,
        max_attempts=config.max_attempts,
        concurrency=concurrency or config.concurrency,
        strict_validation=strict,
    )

    input_p = Path(input_path)
    source_srt = input_p.read_text(encoding="utf-8-sig")
    if not parse_srt(source_srt):
        raise click.ClickException(f"No subtitle blocks found in {input_path}")

    out_dir = Path(output_dir) if output_dir else input_p.parent
    base_name = input_p.stem

    click.echo(f"Input: {input_path}")
    click.echo(f"Translation: {source_lang} → {', '.join(langs)}")
    click.echo(f"LLM: {llm} ({backend.model})")
    click.echo(f"Output: {out_dir}")
    click.echo()

    token = CancellationToken()
    try:
        document = asyncio.run(
            _run(
                dict(
                    source_srt=source_srt,
                    target_langs=langs,
                    backend=backend,
                    options=options,
                    multilang_backend=multilang_backend,
                    source_lang=source_lang,
                    language_retries=config.language_retries,
                    fix_empty=fix_empty,
                    on_progress=_on_progress,
                    on_status=click.echo,
                    chunking=ChunkingSettings(),
                ),
                token,
            )
        )
    except TranslationCancelled:
        click.secho("Cancelled.", fg="yellow", err=True)
        sys.exit(130)
    except TranslationError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        if e.__cause__:
            click.echo(f"  Caused by: {e.__cause__}", err=True)
        sys.exit(1)

    out_dir.mkdir(parents=True, exist_ok=True)
    click.echo("Writing translated subtitles...")
    for code, result in document.results.items():
        if result.status != "done":
            continue
        path = out_dir / output_filename(code, base_name)
        path.write_text(result.srt + "\n", encoding="utf-8")
        click.echo(f"  Saved to {path}")

    if save_terminology_path:
        Path(save_terminology_path).write_text(
            export_terminology(document.terminology) + "\n", encoding="utf-8"
        )
        click.echo(f"  Terminology saved to {save_terminology_path}")

    failed = document.failed_languages
    click.echo()
    if failed:
        names = ", ".join(get_language_name(code) for code in failed)
        done = len(document.results) - len(failed)
        click.secho(f"{done} done, {len(failed)} failed ({names})", fg="yellow", bold=True)
        if done == 0:
            sys.exit(1)
    else:
        click.secho("Done!", fg="green", bold=True)


if __name__ == "__main__":
    main()
