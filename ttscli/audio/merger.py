"""Chunk artifact combination through ffmpeg's concat demuxer.

Responsibilities:
- Merge ordered chunk artifacts into the requested output without re-encoding.
- Remove intermediates after a successful merge, reporting failures softly.
- Leave intermediates in place when the merge itself fails.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from ..errors import PipelineStageError
from ..io.storage import remove_files
from ..models.datatypes import CombineResult
from ..parsing import normalize_optional_string
from ..runtime_tools import is_executable_available, resolve_executable
from ..telemetry.logger import RunLogger

CommandRunner = Callable[..., Any]


class FfmpegConcatCombiner:
    """Combine chunk artifacts listed in a concat file into one output file."""

    def __init__(
        self,
        executable: str = "ffmpeg",
        runner: CommandRunner = subprocess.run,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize combiner with the tool name and subprocess runner."""

        self.executable = executable
        self._runner = runner
        self._run_logger = run_logger

    def check_available(self) -> None:
        """Raise a pre-flight error when the concat tool cannot be found."""

        if not is_executable_available(self.executable):
            raise PipelineStageError(
                stage="preflight",
                detail=f"`{self.executable}` is not installed or not found in PATH.",
                hint="Install ffmpeg or rerun without `--combine`.",
            )

    def build_command(self, manifest_path: Path, output_path: Path) -> list[str]:
        """Return the concat/stream-copy command line."""

        return [
            resolve_executable(self.executable),
            "-y",
            "-hide_banner",
            "-loglevel",
            "error",
            "-f",
            "concat",
            "-safe",
            "0",
            "-i",
            str(manifest_path),
            "-c",
            "copy",
            str(output_path),
        ]

    def combine(
        self,
        output_path: Path,
        manifest_path: Path,
        ledger: Sequence[Path],
    ) -> CombineResult:
        """Merge listed artifacts into `output_path` and delete every ledger file.

        Raises:
            PipelineStageError: If the tool is missing or exits with an error.
        """

        command = self.build_command(manifest_path, output_path)
        try:
            self._runner(command, check=True, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise PipelineStageError(
                stage="combine",
                detail=f"Combination tool `{self.executable}` is not available on PATH.",
                hint="Install ffmpeg; chunk files were left in place.",
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = normalize_optional_string(exc.stderr) or "no stderr output"
            raise PipelineStageError(
                stage="combine",
                detail=f"Error combining audio files into `{output_path}`: {stderr}",
                hint=f"Chunk files and `{manifest_path.name}` were left in place for inspection.",
            ) from exc

        removed, failures = remove_files(ledger)
        if self._run_logger is not None:
            for path in removed:
                self._run_logger.log_event("cleanup", "deleted", file=path)
            for failure in failures:
                self._run_logger.log_warning(
                    "cleanup", "delete_failed", file=failure.path, reason=failure.reason
                )
        return CombineResult(
            output_path=output_path,
            removed=tuple(removed),
            cleanup_failures=tuple(failures),
        )
