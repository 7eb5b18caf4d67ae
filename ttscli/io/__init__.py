"""Filesystem input/output helpers for chunk artifacts."""

from .storage import (
    ConcatListWriter,
    artifact_path_for,
    concat_list_path_for,
    remove_files,
    write_stream,
)

__all__ = [
    "ConcatListWriter",
    "artifact_path_for",
    "concat_list_path_for",
    "remove_files",
    "write_stream",
]
