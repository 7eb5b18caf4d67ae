"""Filesystem helpers for chunk artifacts and concat lists.

Responsibilities:
- Stream audio bytes into freshly truncated artifact files.
- Derive deterministic artifact and concat-list names from the output path.
- Write ffmpeg concat lists and remove intermediates on a best-effort basis.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from ..models.datatypes import CleanupFailure


def artifact_path_for(output_path: Path, index: int, chunk_count: int, extension: str) -> Path:
    """Return the destination file for the chunk at 0-based `index`.

    A single-chunk run writes straight to `output_path`; multi-chunk runs use
    `<output without suffix>_<n>.<extension>` with a 1-based `n`.
    """

    if chunk_count == 1:
        return output_path
    stem = output_path.with_suffix("")
    return stem.with_name(f"{stem.name}_{index + 1}.{extension}")


def concat_list_path_for(output_path: Path) -> Path:
    """Return the concat list path `<output without suffix>.txt`."""

    return output_path.with_suffix(".txt")


def write_stream(path: Path, blocks: Iterable[bytes]) -> int:
    """Write byte blocks into `path`, truncating prior content, and return bytes written."""

    written = 0
    with path.open("wb") as handle:
        for block in blocks:
            handle.write(block)
            written += len(block)
    return written


def escape_concat_name(name: str) -> str:
    """Escape one file name for the ffmpeg concat list format."""

    return name.replace("'", "'\\''")


class ConcatListWriter:
    """Lazily created ffmpeg concat list, one `file '<name>'` line per artifact.

    Entries are written relative to the list location, so each artifact is
    referenced by its file name. The list is truncated on first use and
    flushed after every line; the handle is released on context exit.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the writer without touching the filesystem."""

        self.path = path
        self._handle: TextIO | None = None
        self.entries: list[Path] = []

    @property
    def created(self) -> bool:
        """Return whether the list file has been created in this run."""

        return self._handle is not None or bool(self.entries)

    def append(self, artifact_path: Path) -> None:
        """Append one artifact reference, creating the list on first use."""

        if self._handle is None:
            self._handle = self.path.open("w", encoding="utf-8")
        self._handle.write(f"file '{escape_concat_name(artifact_path.name)}'\n")
        self._handle.flush()
        self.entries.append(artifact_path)

    def close(self) -> None:
        """Close the list handle if it is open."""

        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> ConcatListWriter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def remove_files(paths: Iterable[Path]) -> tuple[list[Path], list[CleanupFailure]]:
    """Delete every path, collecting failures instead of raising."""

    removed: list[Path] = []
    failures: list[CleanupFailure] = []
    for path in paths:
        try:
            path.unlink()
        except OSError as exc:
            failures.append(CleanupFailure(path=path, reason=exc.strerror or str(exc)))
            continue
        removed.append(path)
    return removed, failures
