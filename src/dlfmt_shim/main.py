"""CLI entrypoint for dlfmt-shim."""

import logging
from pathlib import Path
from typing import TextIO

import rich_click as click

from dlfmt_shim import __version__
from dlfmt_shim.config import SUPPORTED_FORMAT_MODES
from dlfmt_shim.controllers import (
    CommandOutcome,
    CompressPathCommand,
    FormatManyCommand,
    FormatPathCommand,
    FormatterCliController,
    FormatTextCommand,
    JsonTaskCommand,
)

click.rich_click.USE_MARKDOWN = True
CONTROLLER = FormatterCliController()

_MODE_OPTION = click.option(
    "--mode",
    type=click.Choice(SUPPORTED_FORMAT_MODES, case_sensitive=False),
    default=None,
    help="Formatting mode passed to dlfmt. Defaults to DLFMT_FORMAT_MODE or auto.",
)
_FILE_ARGUMENT = click.argument(
    "path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path),
)
_DIR_ARGUMENT = click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True, path_type=Path),
    default=".",
)


@click.group()
@click.version_option(version=__version__, prog_name="dlfmt-shim")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Diagnostic log level (written to stderr).",
)
def dlfmt(log_level: str) -> None:
    """Run the dlfmt formatter on files and directories.

    The executable comes from `DLFMT_PATH` or the bundled per-platform binary.
    """

    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@dlfmt.command("format-file")
@_FILE_ARGUMENT
@_MODE_OPTION
def format_file(path: Path, mode: str | None) -> None:
    """Format one file in place."""

    _finish(CONTROLLER.format_file(FormatPathCommand(path=path, mode=mode)))


@dlfmt.command("format-dir")
@_DIR_ARGUMENT
@_MODE_OPTION
def format_dir(path: Path, mode: str | None) -> None:
    """Format every file of a directory in place (current directory by default)."""

    _finish(CONTROLLER.format_directory(FormatPathCommand(path=path, mode=mode)))


@dlfmt.command("compress-file")
@_FILE_ARGUMENT
def compress_file(path: Path) -> None:
    """Compress one file in place."""

    _finish(CONTROLLER.compress_file(CompressPathCommand(path=path)))


@dlfmt.command("compress-dir")
@_DIR_ARGUMENT
def compress_dir(path: Path) -> None:
    """Compress every file of a directory in place (current directory by default)."""

    _finish(CONTROLLER.compress_directory(CompressPathCommand(path=path)))


@dlfmt.command("run-task")
@click.argument(
    "json_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path),
)
def run_task(json_path: Path) -> None:
    """Run a declarative dlfmt task described by a `.json` file."""

    _finish(CONTROLLER.run_json_task(JsonTaskCommand(path=json_path)))


@dlfmt.command("format-text")
@click.option(
    "--input",
    "input_file",
    type=click.File("r", encoding="utf-8"),
    default="-",
    show_default=True,
    help="Document to format; `-` reads stdin.",
)
@_MODE_OPTION
def format_text(input_file: TextIO, mode: str | None) -> None:
    """Format a document and write the result to stdout."""

    outcome = CONTROLLER.format_text(FormatTextCommand(text=input_file.read(), mode=mode))
    _finish(outcome)
    click.echo(outcome.text or "", nl=False)


@dlfmt.command("format-many")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path),
)
@_MODE_OPTION
def format_many(paths: tuple[Path, ...], mode: str | None) -> None:
    """Format several files concurrently, bounded by `DLFMT_MAX_CONCURRENCY`."""

    _finish(CONTROLLER.format_many(FormatManyCommand(paths=paths, mode=mode)))


def _finish(outcome: CommandOutcome) -> None:
    _emit_lines(outcome.lines)
    if not outcome.success:
        raise click.ClickException(f"dlfmt failed: {'; '.join(outcome.errors)}")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    dlfmt()
