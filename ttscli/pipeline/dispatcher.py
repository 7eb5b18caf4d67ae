"""Sequential per-chunk speech dispatch.

Responsibilities:
- Drive the chunk loop: name, list, pace, build, send, persist.
- Keep the created-files ledger in creation order.
- Abort the run at the first failing chunk, leaving earlier artifacts on disk.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from ..config import TTSConfig
from ..errors import PipelineStageError
from ..io.storage import ConcatListWriter, artifact_path_for, concat_list_path_for, write_stream
from ..models.datatypes import Chunk, DispatchOutcome, SynthesisRequest
from ..telemetry.logger import RunLogger
from ..tts.openai_client import OpenAIProviderError, OpenAISpeechClient
from ..tts.rate_limiter import RateLimiter
from ..tts.request_builder import build_request
from ..tts.transport import TransportError


class ChunkDispatcher:
    """Submit chunks one at a time and persist each response body."""

    def __init__(
        self,
        client: OpenAISpeechClient,
        rate_limiter: RateLimiter | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize dispatcher collaborators."""

        self._client = client
        self._rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self._run_logger = run_logger

    def process(self, chunks: Sequence[Chunk], config: TTSConfig) -> DispatchOutcome:
        """Dispatch every chunk in order and return the produced files.

        Raises:
            PipelineStageError: On the first provider, transport, or filesystem failure.
        """

        chunk_count = len(chunks)
        settings = config.speech_settings()
        write_manifest = config.combine_files and chunk_count > 1
        manifest_path = concat_list_path_for(config.output_file) if write_manifest else None

        output_files: list[Path] = []
        ledger: list[Path] = []
        manifest = ConcatListWriter(manifest_path) if manifest_path is not None else None
        try:
            for chunk in chunks:
                destination = artifact_path_for(
                    config.output_file, chunk.index, chunk_count, settings.response_format
                )
                if manifest is not None:
                    self._append_manifest_line(manifest, destination, ledger)

                self._rate_limiter.acquire()
                request = build_request(chunk, settings)
                self._send_and_persist(request, destination, chunk, chunk_count, ledger)

                output_files.append(destination)
                ledger.append(destination)
        except PipelineStageError as exc:
            exc.created_files = tuple(ledger)
            raise
        finally:
            if manifest is not None:
                manifest.close()

        return DispatchOutcome(
            output_files=tuple(output_files),
            ledger=tuple(ledger),
            manifest_path=manifest_path,
        )

    def _append_manifest_line(
        self,
        manifest: ConcatListWriter,
        destination: Path,
        ledger: list[Path],
    ) -> None:
        """Record one artifact in the concat list, creating it on first use."""

        first_use = not manifest.created
        try:
            manifest.append(destination)
        except OSError as exc:
            raise PipelineStageError(
                stage="write",
                detail=f"Error writing to concat list `{manifest.path}`: {exc}",
                hint="Check that the output directory exists and is writable.",
            ) from exc
        if first_use:
            ledger.append(manifest.path)

    def _send_and_persist(
        self,
        request: SynthesisRequest,
        destination: Path,
        chunk: Chunk,
        chunk_count: int,
        ledger: list[Path],
    ) -> None:
        """Send one request and stream its body into `destination`.

        A partially written `destination` is added to `ledger` before the
        failure propagates.
        """

        position = f"{chunk.index + 1}/{chunk_count}"
        try:
            response = self._client.open_speech_stream(request)
        except OpenAIProviderError as exc:
            if self._run_logger is not None:
                self._run_logger.log_warning(
                    "synthesize", "provider_error", chunk=position, failure_kind=exc.failure_kind
                )
            raise PipelineStageError(
                stage="synthesize",
                detail=f"Chunk {position} failed: {exc}",
                hint=_provider_hint(exc),
            ) from exc

        with response:
            try:
                written = write_stream(destination, response.iter_bytes())
            except TransportError as exc:
                _record_partial(destination, ledger)
                raise PipelineStageError(
                    stage="synthesize",
                    detail=f"Chunk {position} response stream failed: {exc}",
                ) from exc
            except OSError as exc:
                _record_partial(destination, ledger)
                raise PipelineStageError(
                    stage="write",
                    detail=f"Unable to write output file `{destination}`: {exc}",
                    hint="Check that the output directory exists and is writable.",
                ) from exc

        if self._run_logger is not None:
            self._run_logger.log_event(
                "synthesize", "saved", chunk=position, file=destination, bytes=written
            )


def _record_partial(destination: Path, ledger: list[Path]) -> None:
    if destination.exists() and destination not in ledger:
        ledger.append(destination)


def _provider_hint(exc: OpenAIProviderError) -> str | None:
    return {
        "invalid_api_key": "Run `ttscli configure` or set `OPENAI_API_KEY` with a valid key.",
        "insufficient_quota": "Check the OpenAI account billing and quota.",
        "rate_limited": "Rerun with `--rate-limit` to pace requests.",
        "timeout": "The request timed out; earlier chunk files were kept.",
    }.get(exc.failure_kind)
