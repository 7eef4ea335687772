"""Shared test fixtures."""

from __future__ import annotations

import json
import os
import stat
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

_FAKE_DLFMT = """
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]
record = os.environ.get("FAKE_DLFMT_RECORD")
if record:
    with open(record, "a", encoding="utf-8") as handle:
        handle.write(json.dumps({"args": args, "cwd": os.getcwd()}) + "\\n")

if os.environ.get("FAKE_DLFMT_FAIL"):
    print("boom", file=sys.stderr)
    raise SystemExit(2)

if args and args[0] == "--format-file":
    target = Path(args[1])
    text = target.read_text("utf-8")
    target.write_text("".join(line.rstrip() + "\\n" for line in text.splitlines()), "utf-8")

print("dlfmt ok " + " ".join(args[:1]))
"""


@dataclass(slots=True)
class FakeDlfmt:
    """Fake formatter executable recording every invocation."""

    path: Path
    record_path: Path

    def calls(self) -> list[dict[str, object]]:
        if not self.record_path.exists():
            return []
        return [
            json.loads(line)
            for line in self.record_path.read_text("utf-8").splitlines()
            if line.strip()
        ]


def write_executable(path: Path, script: str) -> Path:
    """Write a Python script behind a platform launcher and return the launcher."""

    implementation = path.parent / f"{path.name}_impl.py"
    implementation.write_text(script.strip() + "\n", "utf-8")

    if os.name == "nt":
        launcher = path.parent / f"{path.name}.cmd"
        launcher.write_text(
            f'@echo off\r\n"{sys.executable}" "{implementation}" %*\r\n',
            "utf-8",
        )
        return launcher

    path.write_text(
        f'#!/usr/bin/env sh\nexec "{sys.executable}" "{implementation}" "$@"\n',
        "utf-8",
    )
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@pytest.fixture()
def fake_dlfmt(tmp_path: Path, monkeypatch) -> FakeDlfmt:
    """Install a fake dlfmt and point ``DLFMT_PATH`` at it."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    executable = write_executable(bin_dir / "dlfmt", _FAKE_DLFMT)
    record_path = tmp_path / "dlfmt-calls.jsonl"
    monkeypatch.setenv("DLFMT_PATH", str(executable))
    monkeypatch.setenv("FAKE_DLFMT_RECORD", str(record_path))
    monkeypatch.delenv("FAKE_DLFMT_FAIL", raising=False)
    monkeypatch.delenv("DLFMT_FORMAT_MODE", raising=False)
    monkeypatch.delenv("DLFMT_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("DLFMT_TIMEOUT_SECONDS", raising=False)
    return FakeDlfmt(path=executable, record_path=record_path)
