"""Domain exceptions for pipeline and CLI diagnostics."""

from __future__ import annotations

from pathlib import Path


class PipelineStageError(RuntimeError):
    """Raised when a specific pipeline stage fails.

    `created_files` lists files already written when the failure happened;
    they are left on disk for inspection.
    """

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
        created_files: tuple[Path, ...] = (),
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
        self.created_files = created_files
