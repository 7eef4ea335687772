"""Runtime configuration for the formatter shim."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dlfmt_shim.runner.gate import DEFAULT_MAX_CONCURRENCY
from dlfmt_shim.runner.process import DEFAULT_KILL_GRACE_SECONDS

DEFAULT_BUNDLE_DIR = Path(__file__).resolve().parent / "bin"
SUPPORTED_FORMAT_MODES = ("auto", "manual")


@dataclass(slots=True)
class RunnerSettings:
    """Process runner settings."""

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    timeout_seconds: float | None = None
    kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS


@dataclass(slots=True)
class Settings:
    """Application settings."""

    executable_path: str | None = None
    bundle_dir: Path = DEFAULT_BUNDLE_DIR
    format_mode: str = "auto"
    runner: RunnerSettings = field(default_factory=RunnerSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from ``DLFMT_*`` environment variables."""

        return cls(
            executable_path=os.getenv("DLFMT_PATH", "").strip() or None,
            bundle_dir=Path(os.getenv("DLFMT_BUNDLE_DIR", str(DEFAULT_BUNDLE_DIR))),
            format_mode=os.getenv("DLFMT_FORMAT_MODE", "auto").strip().lower(),
            runner=RunnerSettings(
                max_concurrency=_env_int("DLFMT_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
                timeout_seconds=_env_optional_float("DLFMT_TIMEOUT_SECONDS"),
                kill_grace_seconds=_env_float(
                    "DLFMT_KILL_GRACE_SECONDS",
                    DEFAULT_KILL_GRACE_SECONDS,
                ),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error on out-of-range values."""

        if self.format_mode not in SUPPORTED_FORMAT_MODES:
            raise ValueError(
                f"DLFMT_FORMAT_MODE must be one of {', '.join(SUPPORTED_FORMAT_MODES)}; "
                f"got {self.format_mode!r}.",
            )
        if self.runner.max_concurrency < 1:
            raise ValueError("DLFMT_MAX_CONCURRENCY must be >= 1.")
        if self.runner.timeout_seconds is not None and self.runner.timeout_seconds <= 0:
            raise ValueError("DLFMT_TIMEOUT_SECONDS must be > 0.")
        if self.runner.kill_grace_seconds < 0:
            raise ValueError("DLFMT_KILL_GRACE_SECONDS must be >= 0.")


def _env_optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid float value for {name}: {raw!r}") from error


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: float) -> float:
    value = _env_optional_float(name)
    return default if value is None else value
