"""Runtime executable resolution helpers.

Responsibilities:
- Resolve external executable paths with bundled-first precedence.
- Answer pre-flight availability checks before any provider call is made.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import sys


def resolve_executable(command_name: str) -> str:
    """Resolve an executable with bundled-first precedence, then PATH.

    Resolution order:
    1. Bundled app directories (`./bin/<tool>` then `./<tool>` from app root).
    2. System `PATH`.
    3. Raw command name (allowing subprocess to raise a native missing-binary error).
    """

    normalized = command_name.strip()
    if not normalized:
        return command_name

    located = _locate(normalized)
    return located if located is not None else normalized


def is_executable_available(command_name: str) -> bool:
    """Return whether `command_name` resolves to a bundled binary or a PATH entry."""

    normalized = command_name.strip()
    if not normalized:
        return False
    return _locate(normalized) is not None


def _locate(command_name: str) -> str | None:
    for candidate in _bundled_candidates(command_name):
        if candidate.is_file():
            return str(candidate)
    return shutil.which(command_name)


def _bundled_candidates(command_name: str) -> list[Path]:
    """Return bundled candidate paths for one executable name."""

    app_root = _app_root()
    candidates: list[Path] = []
    for name in _candidate_names(command_name):
        candidates.append(app_root / "bin" / name)
        candidates.append(app_root / name)
    return candidates


def _candidate_names(command_name: str) -> tuple[str, ...]:
    """Return command name variants including Windows `.exe` fallback."""

    if command_name.lower().endswith(".exe"):
        return (command_name,)
    return (command_name, f"{command_name}.exe")


def _app_root() -> Path:
    """Resolve runtime application root for frozen and non-frozen execution."""

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]
