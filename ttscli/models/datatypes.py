"""Core datatypes shared across ttscli modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Keep chunk framing rules next to the chunk record that carries them.

Key types:
- `Chunk`, `SynthesisRequest`, `CleanupFailure`, `CombineResult`,
  `DispatchOutcome`, and `RunResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


BUFFER_PROLOGUE = "Begin Text\n"
BUFFER_EPILOGUE = "\nEnd Text"


@dataclass(frozen=True, slots=True)
class Chunk:
    """A bounded text segment derived from the input text.

    Attributes:
        index: 0-based position of the chunk in the input.
        text: Core chunk text, exactly as it appears in the input.
        framed: Whether the chunk is sent wrapped in buffer prologue/epilogue.
    """

    index: int
    text: str
    framed: bool = False

    @property
    def payload(self) -> str:
        """Return the text submitted to the provider for this chunk."""

        if self.framed:
            return f"{BUFFER_PROLOGUE}{self.text}{BUFFER_EPILOGUE}"
        return self.text


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    """Provider payload for one chunk.

    Attributes:
        model: Provider model identifier.
        input: Text to synthesize.
        voice: Provider voice identifier.
        response_format: Requested audio container/codec.
        speed: Speech speed multiplier.
    """

    model: str
    input: str
    voice: str
    response_format: str
    speed: float

    def as_payload(self) -> dict[str, object]:
        """Return the JSON mapping sent to the speech endpoint."""

        return {
            "model": self.model,
            "input": self.input,
            "voice": self.voice,
            "response_format": self.response_format,
            "speed": self.speed,
        }


@dataclass(frozen=True, slots=True)
class CleanupFailure:
    """An intermediate file that could not be removed after combination."""

    path: Path
    reason: str


@dataclass(frozen=True, slots=True)
class CombineResult:
    """Outcome of merging chunk artifacts into one output file.

    Attributes:
        output_path: Final combined artifact path.
        removed: Intermediate files deleted after a successful merge.
        cleanup_failures: Intermediate files that could not be deleted.
    """

    output_path: Path
    removed: tuple[Path, ...] = ()
    cleanup_failures: tuple[CleanupFailure, ...] = ()


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Files produced by one dispatcher run.

    Attributes:
        output_files: Artifact files in chunk order.
        ledger: Every created file in creation order, manifest included.
        manifest_path: Concat list path when one was written.
    """

    output_files: tuple[Path, ...]
    ledger: tuple[Path, ...]
    manifest_path: Path | None = None


@dataclass(frozen=True, slots=True)
class RunResult:
    """Summary of one end-to-end conversion run."""

    chunk_count: int
    output_files: tuple[Path, ...] = ()
    ledger: tuple[Path, ...] = ()
    final_output: Path | None = None
    combined: bool = False
    cancelled: bool = False
    cleanup_failures: tuple[CleanupFailure, ...] = field(default_factory=tuple)
