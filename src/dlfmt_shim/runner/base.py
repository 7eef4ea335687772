"""Request, result and sink types shared by the process runner."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

TIMEOUT_EXIT_CODE = 124


class LogSink(Protocol):
    """Append-only text destination for audit lines and captured output."""

    def append(self, text: str) -> None:
        """Append raw text as-is."""

    def append_line(self, text: str) -> None:
        """Append text followed by a newline."""


class InvocationFailedError(RuntimeError):
    """Raised by ``InvocationResult.raise_for_status`` for failed invocations."""

    def __init__(self, message: str, *, result: InvocationResult) -> None:
        super().__init__(message)
        self.result = result


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """One request to run the formatter executable."""

    executable: str
    args: tuple[str, ...]
    cwd: Path
    sink: LogSink
    timeout_seconds: float | None = None


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Execution outcome of one invocation.

    ``exit_code`` is ``None`` when the process never started; ``spawn_error``
    then holds the OS error message.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    spawn_error: str | None = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.spawn_error is None

    def describe_failure(self) -> str:
        """Render the diagnostic message for a failed invocation."""

        if self.spawn_error is not None:
            head = f"dlfmt failed to start: {self.spawn_error}"
        elif self.timed_out:
            head = "dlfmt timed out and was terminated"
        else:
            head = f"dlfmt exited with code {self.exit_code}"
        if self.stderr:
            return f"{head}\n{self.stderr}"
        return head

    def raise_for_status(self) -> None:
        """Raise ``InvocationFailedError`` unless the invocation succeeded."""

        if not self.succeeded:
            raise InvocationFailedError(self.describe_failure(), result=self)
