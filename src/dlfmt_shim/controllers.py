"""Controllers for formatter CLI commands."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from dlfmt_shim.config import Settings
from dlfmt_shim.operations import FormatMode, FormatterService
from dlfmt_shim.runner import (
    ConcurrencyGate,
    InvocationFailedError,
    LogSink,
    ProcessRunner,
    StreamSink,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class FormatPathCommand:
    """CLI input for file or directory formatting."""

    path: Path
    mode: str | None = None


@dataclass(slots=True)
class CompressPathCommand:
    """CLI input for file or directory compression."""

    path: Path


@dataclass(slots=True)
class JsonTaskCommand:
    """CLI input for a declarative JSON task."""

    path: Path


@dataclass(slots=True)
class FormatTextCommand:
    """CLI input for formatting an in-memory document."""

    text: str
    mode: str | None = None


@dataclass(slots=True)
class FormatManyCommand:
    """CLI input for formatting several files concurrently."""

    paths: tuple[Path, ...]
    mode: str | None = None


@dataclass(slots=True)
class CommandOutcome:
    """Lines to print and the overall status of one command."""

    success: bool
    lines: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    text: str | None = None


class FormatterCliController:
    """Build the runner stack per command and map failures to outcomes."""

    def __init__(
        self,
        *,
        settings_factory: Callable[[], Settings] = Settings.from_env,
        sink_factory: Callable[[], LogSink] | None = None,
    ) -> None:
        self._settings_factory = settings_factory
        self._sink_factory = sink_factory or (lambda: StreamSink(sys.stderr))

    def format_file(self, command: FormatPathCommand) -> CommandOutcome:
        return self._execute(
            lambda service, settings: service.format_file(
                command.path,
                _resolve_mode(command.mode, settings),
            ),
            success_line=lambda _result: f"dlfmt: formatted file {command.path.name}",
        )

    def format_directory(self, command: FormatPathCommand) -> CommandOutcome:
        return self._execute(
            lambda service, settings: service.format_directory(
                command.path,
                _resolve_mode(command.mode, settings),
            ),
            success_line=lambda _result: f"dlfmt: formatted directory {command.path}",
        )

    def compress_file(self, command: CompressPathCommand) -> CommandOutcome:
        return self._execute(
            lambda service, _settings: service.compress_file(command.path),
            success_line=lambda _result: f"dlfmt: compressed file {command.path.name}",
        )

    def compress_directory(self, command: CompressPathCommand) -> CommandOutcome:
        return self._execute(
            lambda service, _settings: service.compress_directory(command.path),
            success_line=lambda _result: f"dlfmt: compressed directory {command.path}",
        )

    def run_json_task(self, command: JsonTaskCommand) -> CommandOutcome:
        return self._execute(
            lambda service, _settings: service.run_json_task(command.path),
            success_line=lambda _result: f"dlfmt: ran JSON task {command.path.name}",
        )

    def format_text(self, command: FormatTextCommand) -> CommandOutcome:
        outcome = self._execute(
            lambda service, settings: service.format_text(
                command.text,
                _resolve_mode(command.mode, settings),
            ),
            success_line=None,
        )
        if outcome.success and outcome.text is None:
            outcome.text = command.text
        return outcome

    def format_many(self, command: FormatManyCommand) -> CommandOutcome:
        sink = self._sink_factory()
        try:
            settings = self._load_settings()
            mode = _resolve_mode(command.mode, settings)
        except ValueError as error:
            return _failure(sink, str(error))

        async def _run_all() -> list[object]:
            service = _build_service(settings, sink)
            return await asyncio.gather(
                *(service.format_file(path, mode) for path in command.paths),
                return_exceptions=True,
            )

        outcome = CommandOutcome(success=True)
        for path, result in zip(command.paths, asyncio.run(_run_all()), strict=True):
            if isinstance(result, ValueError | InvocationFailedError):
                message = f"{path}: {result}"
                sink.append_line(f"[error] {message}")
                outcome.success = False
                outcome.errors.append(message)
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome.lines.append(f"dlfmt: formatted file {path.name}")
        return outcome

    def _execute(
        self,
        operation: Callable[[FormatterService, Settings], Awaitable[T]],
        *,
        success_line: Callable[[T], str] | None,
    ) -> CommandOutcome:
        sink = self._sink_factory()
        try:
            settings = self._load_settings()

            async def _run() -> T:
                return await operation(_build_service(settings, sink), settings)

            value = asyncio.run(_run())
        except (ValueError, InvocationFailedError) as error:
            return _failure(sink, str(error))

        outcome = CommandOutcome(success=True)
        if success_line is not None:
            outcome.lines.append(success_line(value))
        if isinstance(value, str):
            outcome.text = value
        return outcome

    def _load_settings(self) -> Settings:
        settings = self._settings_factory()
        settings.validate()
        return settings


def _build_service(settings: Settings, sink: LogSink) -> FormatterService:
    gate = ConcurrencyGate(settings.runner.max_concurrency)
    runner = ProcessRunner(gate, kill_grace_seconds=settings.runner.kill_grace_seconds)
    return FormatterService(settings=settings, runner=runner, sink=sink)


def _resolve_mode(mode: str | None, settings: Settings) -> FormatMode:
    return FormatMode.parse(mode if mode is not None else settings.format_mode)


def _failure(sink: LogSink, message: str) -> CommandOutcome:
    logger.debug("Command failed: %s", message)
    sink.append_line(f"[error] {message}")
    return CommandOutcome(success=False, errors=[message])
