"""chatmarkup CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from chatmarkup.content import ParsedMessageContent, build_parsed_message_content
from chatmarkup.renderer.html_renderer import HTMLRenderer
from chatmarkup.streaming.consumer import StreamError, consume_stream

_FORMATS = ("json", "markup", "text", "html")

_format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(_FORMATS, case_sensitive=False),
    default="json",
    show_default=True,
    help="Output representation",
)
_output_option = click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Output path (default: stdout)"
)
_title_option = click.option("--title", type=str, default=None, help="Page title for HTML output")
_dark_mode_option = click.option("--dark-mode", is_flag=True, help="Use the dark stylesheet for HTML output")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Parse chat markdown into blocks, plain text and custom-element markup."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("parse")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_format_option
@_output_option
@_title_option
@_dark_mode_option
def parse_command(
    input_path: Path,
    output_format: str,
    output: Path | None,
    title: str | None,
    dark_mode: bool,
) -> None:
    """Parse a complete markdown message file."""
    try:
        text = input_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(f"Cannot read {input_path}: {exc}") from exc
    parsed = build_parsed_message_content(text)
    _emit(_format(parsed, output_format.lower(), title=title or input_path.stem, dark_mode=dark_mode), output)


@main.command("replay")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_format_option
@_output_option
@_title_option
@_dark_mode_option
def replay_command(
    input_path: Path,
    output_format: str,
    output: Path | None,
    title: str | None,
    dark_mode: bool,
) -> None:
    """Replay a newline-delimited structured chunk stream and print the final message."""
    try:
        with input_path.open(encoding="utf-8") as handle:
            completion = consume_stream(handle)
    except StreamError as exc:
        code = f" ({exc.code})" if exc.code else ""
        raise click.ClickException(f"Stream reported an error{code}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(f"Cannot read {input_path}: {exc}") from exc

    rendered = _format(completion.parsed, output_format.lower(), title=title or input_path.stem, dark_mode=dark_mode)
    _emit(rendered, output)


def _format(parsed: ParsedMessageContent, output_format: str, *, title: str, dark_mode: bool) -> str:
    if output_format == "markup":
        return parsed.custom_markup
    if output_format == "text":
        return parsed.plain_text
    if output_format == "html":
        return HTMLRenderer().render(parsed, title=title, dark_mode=dark_mode)
    return json.dumps(parsed.to_dict(), ensure_ascii=False, indent=2)


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        click.echo(text)
        return
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Cannot write {output}: {exc}") from exc
    click.echo(f"Rendered: {output}")


if __name__ == "__main__":  # pragma: no cover
    main()
