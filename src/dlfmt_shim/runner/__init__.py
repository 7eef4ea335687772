"""Bounded-concurrency runner for external executables."""

from dlfmt_shim.runner.base import (
    InvocationFailedError,
    InvocationRequest,
    InvocationResult,
    LogSink,
)
from dlfmt_shim.runner.gate import ConcurrencyGate
from dlfmt_shim.runner.process import ProcessRunner, format_audit_line
from dlfmt_shim.runner.sink import MemorySink, StreamSink

__all__ = [
    "ConcurrencyGate",
    "InvocationFailedError",
    "InvocationRequest",
    "InvocationResult",
    "LogSink",
    "MemorySink",
    "ProcessRunner",
    "StreamSink",
    "format_audit_line",
]
