"""Locate the formatter executable: configured override or bundled binary."""

from __future__ import annotations

import logging
import os
import platform
import sys
from pathlib import Path

from dlfmt_shim.config import Settings
from dlfmt_shim.runner.base import LogSink

logger = logging.getLogger(__name__)

_BUNDLED_NAMES = {
    "win32": "dlfmt-windows.exe",
    "linux": "dlfmt-linux",
    "darwin": "dlfmt-macos",
}


class ConfigurationError(ValueError):
    """Formatter executable cannot be located."""


def bundled_executable_path(
    bundle_dir: Path,
    *,
    platform_name: str | None = None,
    machine: str | None = None,
) -> Path:
    """Return the per-platform path of the binary shipped with the package."""

    current_platform = platform_name or sys.platform
    name = _BUNDLED_NAMES.get(current_platform)
    if name is not None:
        return bundle_dir / name
    return bundle_dir / current_platform / (machine or platform.machine()) / "dlfmt"


def resolve_executable(
    settings: Settings,
    sink: LogSink,
    *,
    platform_name: str | None = None,
) -> str:
    """Resolve the executable to spawn, preferring ``settings.executable_path``."""

    configured = (settings.executable_path or "").strip()
    if configured:
        if not Path(configured).exists():
            raise ConfigurationError(f"configured dlfmt path does not exist: {configured}")
        return configured

    current_platform = platform_name or sys.platform
    bundled = bundled_executable_path(settings.bundle_dir, platform_name=current_platform)
    if not bundled.exists():
        raise ConfigurationError(f"bundled dlfmt executable not found: {bundled}")

    if current_platform != "win32":
        _ensure_executable(bundled, sink)
    return str(bundled)


def _ensure_executable(path: Path, sink: LogSink) -> None:
    try:
        os.chmod(path, 0o755)
    except OSError as error:
        logger.warning("Could not mark %s executable: %s", path, error)
        sink.append_line(f"[warning] failed to set executable permission: {error}")
