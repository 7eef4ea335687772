"""Formatter operations: wire arguments and the service that runs them."""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path
from tempfile import TemporaryDirectory

from dlfmt_shim.config import Settings
from dlfmt_shim.executable import resolve_executable
from dlfmt_shim.runner import InvocationRequest, InvocationResult, LogSink, ProcessRunner

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".lua"


class FormatMode(StrEnum):
    """Formatting mode passed through ``--param``."""

    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: str | FormatMode) -> FormatMode:
        try:
            return cls(str(value).strip().lower())
        except ValueError as error:
            raise ValueError(
                f"Unsupported format mode: {value!r} (expected auto or manual)",
            ) from error


def format_file_args(path: Path, mode: FormatMode) -> tuple[str, ...]:
    return ("--format-file", str(path), "--param", mode.value)


def format_directory_args(path: Path, mode: FormatMode) -> tuple[str, ...]:
    return ("--format-directory", str(path), "--param", mode.value)


def compress_file_args(path: Path) -> tuple[str, ...]:
    return ("--compress-file", str(path))


def compress_directory_args(path: Path) -> tuple[str, ...]:
    return ("--compress-directory", str(path))


def json_task_args(path: Path) -> tuple[str, ...]:
    if path.suffix.lower() != ".json":
        raise ValueError(f"JSON task must be a .json file: {path}")
    return ("--json-task", str(path))


class FormatterService:
    """Run formatter operations through one shared process runner.

    Every operation resolves the executable first, so configuration errors
    surface before a gate slot is taken, and raises ``InvocationFailedError``
    when the formatter fails.
    """

    def __init__(self, *, settings: Settings, runner: ProcessRunner, sink: LogSink) -> None:
        self.settings = settings
        self.runner = runner
        self.sink = sink

    async def format_file(self, path: Path, mode: FormatMode) -> InvocationResult:
        return await self._invoke(format_file_args(path, mode), cwd=path.parent)

    async def format_directory(self, path: Path, mode: FormatMode) -> InvocationResult:
        return await self._invoke(format_directory_args(path, mode), cwd=path)

    async def compress_file(self, path: Path) -> InvocationResult:
        return await self._invoke(compress_file_args(path), cwd=path.parent)

    async def compress_directory(self, path: Path) -> InvocationResult:
        return await self._invoke(compress_directory_args(path), cwd=path)

    async def run_json_task(self, path: Path) -> InvocationResult:
        return await self._invoke(json_task_args(path), cwd=path.parent)

    async def format_text(self, text: str, mode: FormatMode) -> str | None:
        """Format an in-memory document through a temporary file.

        Returns the formatted text, or ``None`` when the formatter left the
        document unchanged.
        """

        with TemporaryDirectory(prefix="dlfmt-", ignore_cleanup_errors=True) as temp_dir:
            document = Path(temp_dir) / f"document{DOCUMENT_SUFFIX}"
            document.write_bytes(text.encode("utf-8"))
            await self._invoke(format_file_args(document, mode), cwd=document.parent)
            formatted = document.read_bytes().decode("utf-8")

        if formatted == text:
            logger.debug("Formatter left the document unchanged")
            return None
        return formatted

    async def _invoke(self, args: tuple[str, ...], *, cwd: Path) -> InvocationResult:
        executable = resolve_executable(self.settings, self.sink)
        result = await self.runner.run(
            InvocationRequest(
                executable=executable,
                args=args,
                cwd=cwd,
                sink=self.sink,
                timeout_seconds=self.settings.runner.timeout_seconds,
            ),
        )
        result.raise_for_status()
        return result
