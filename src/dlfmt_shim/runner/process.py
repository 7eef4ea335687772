"""Gate-bounded subprocess runner for the formatter executable."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Sequence

from dlfmt_shim.runner.base import TIMEOUT_EXIT_CODE, InvocationRequest, InvocationResult
from dlfmt_shim.runner.gate import ConcurrencyGate

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s")
DEFAULT_KILL_GRACE_SECONDS = 2.0
_READ_CHUNK_BYTES = 65536


def format_audit_line(executable: str, args: Sequence[str]) -> str:
    """Render the ``> "exe" args`` line written before every spawn."""

    rendered = " ".join(f'"{arg}"' if _WHITESPACE.search(arg) else arg for arg in args)
    return f'> "{executable}" {rendered}'


class ProcessRunner:
    """Run one invocation at a time per gate slot and collect its output."""

    def __init__(
        self,
        gate: ConcurrencyGate,
        *,
        kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS,
    ) -> None:
        self.gate = gate
        self.kill_grace_seconds = kill_grace_seconds

    async def run(self, request: InvocationRequest) -> InvocationResult:
        async with self.gate:
            request.sink.append_line(format_audit_line(request.executable, request.args))
            try:
                process = await asyncio.create_subprocess_exec(
                    request.executable,
                    *request.args,
                    cwd=request.cwd,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as error:
                logger.debug("Failed to spawn %s: %s", request.executable, error)
                return InvocationResult(exit_code=None, spawn_error=str(error))

            logger.debug("Spawned %s (pid=%s)", request.executable, process.pid)
            stdout_buffer = bytearray()
            stderr_buffer = bytearray()
            readers = asyncio.gather(
                _drain(process.stdout, stdout_buffer),
                _drain(process.stderr, stderr_buffer),
            )
            timed_out = False
            try:
                await asyncio.wait_for(process.wait(), timeout=request.timeout_seconds)
            except TimeoutError:
                timed_out = True
                logger.warning(
                    "%s exceeded %ss, terminating pid=%s",
                    request.executable,
                    request.timeout_seconds,
                    process.pid,
                )
                await self._terminate(process)
                try:
                    await asyncio.wait_for(readers, timeout=self.kill_grace_seconds)
                except TimeoutError:
                    logger.debug("Output pipes of pid=%s still open after kill", process.pid)
            else:
                await readers

            stdout = _decode(bytes(stdout_buffer))
            stderr = _decode(bytes(stderr_buffer))
            if stdout:
                request.sink.append(stdout)
            if stderr:
                request.sink.append(stderr)

            if timed_out:
                return InvocationResult(
                    exit_code=TIMEOUT_EXIT_CODE,
                    stdout=stdout,
                    stderr=stderr,
                    timed_out=True,
                )
            logger.debug("%s exited with code %s", request.executable, process.returncode)
            return InvocationResult(exit_code=process.returncode, stdout=stdout, stderr=stderr)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                return
            await process.wait()


async def _drain(stream: asyncio.StreamReader | None, buffer: bytearray) -> None:
    if stream is None:
        return
    while chunk := await stream.read(_READ_CHUNK_BYTES):
        buffer.extend(chunk)


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
