"""Log sink implementations."""

from __future__ import annotations

from typing import TextIO


class StreamSink:
    """Sink writing straight to a text stream, flushing after every write."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def append(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def append_line(self, text: str) -> None:
        self.append(f"{text}\n")


class MemorySink:
    """Sink accumulating everything in memory."""

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def append(self, text: str) -> None:
        self._chunks.append(text)

    def append_line(self, text: str) -> None:
        self._chunks.append(f"{text}\n")

    @property
    def text(self) -> str:
        return "".join(self._chunks)

    def lines(self) -> list[str]:
        return self.text.splitlines()
