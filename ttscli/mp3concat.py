"""Argument validation for the `mp3concat` companion command.

The command only checks its arguments; it does not join any audio.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

ALLOWED_EXTENSION = ".mp3"
REQUIRED_FILE_COUNT = 3


@dataclass(frozen=True, slots=True)
class Mp3File:
    """One validated `.mp3` argument."""

    path: Path


def validate_concat_inputs(file_names: Sequence[str]) -> list[Mp3File]:
    """Validate `mp3concat` arguments and return them in order.

    Raises:
        ValueError: If any argument lacks the `.mp3` extension or fewer than
            three files were given.
    """

    files: list[Mp3File] = []
    for file_name in file_names:
        if not file_name.endswith(ALLOWED_EXTENSION):
            raise ValueError(f"All files must end with {ALLOWED_EXTENSION}: `{file_name}`.")
        files.append(Mp3File(path=Path(file_name)))
    if len(files) < REQUIRED_FILE_COUNT:
        raise ValueError(
            f"Not enough files to concat: need at least {REQUIRED_FILE_COUNT}, got {len(files)}."
        )
    return files
