"""Pipeline orchestration for ttscli.

Responsibilities:
- Define the stage order for one text-to-speech conversion run.
- Run pre-flight checks before any provider call is made.
- Coordinate chunking, dispatch, and combination into a `RunResult`.

Key types:
- `TTSPipeline`: orchestration facade.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from ..audio.merger import FfmpegConcatCombiner
from ..config import TTSConfig
from ..errors import PipelineStageError
from ..models.datatypes import Chunk, RunResult
from ..telemetry.logger import RunLogger
from ..text.chunking import Chunker
from ..tts.openai_client import OpenAISpeechClient
from ..tts.rate_limiter import RateLimiter
from ..tts.transport import RequestsTransport, Transport
from .dispatcher import ChunkDispatcher

ConfirmCallback = Callable[[int], bool]
T = TypeVar("T")


def _always_confirm(_chunk_count: int) -> bool:
    return True


class TTSPipeline:
    """Orchestrates read, chunk, confirm, dispatch, and combine stages."""

    def __init__(
        self,
        transport: Transport | None = None,
        combiner: FfmpegConcatCombiner | None = None,
        run_logger: RunLogger | None = None,
        confirm: ConfirmCallback = _always_confirm,
        rate_limiter_factory: Callable[[int], RateLimiter] = RateLimiter.from_calls_per_minute,
        chunker: Chunker | None = None,
    ) -> None:
        """Initialize pipeline collaborators.

        Args:
            transport: HTTP transport; a `requests`-backed one is created when omitted.
            combiner: ffmpeg combiner used for multi-chunk combination.
            run_logger: Optional structured logger.
            confirm: Called with the chunk count before a multi-file run;
                returning `False` cancels cleanly.
            rate_limiter_factory: Builds the gate from calls-per-minute.
            chunker: Text chunker.
        """

        self._transport = transport
        self._run_logger = run_logger
        self._combiner = (
            combiner if combiner is not None else FfmpegConcatCombiner(run_logger=run_logger)
        )
        self._confirm = confirm
        self._rate_limiter_factory = rate_limiter_factory
        self._chunker = chunker if chunker is not None else Chunker()

    def run(self, config: TTSConfig) -> RunResult:
        """Execute one conversion run.

        Raises:
            PipelineStageError: When any stage fails.
        """

        self._validate_config(config)
        api_key = self._require_api_key(config)
        if config.combine_files:
            self._run_stage("preflight", self._combiner.check_available)

        text = self._run_stage("read", lambda: self._read_input(config.input_file))
        chunks = self._run_stage("chunk", lambda: self._chunk(text, config))
        if not chunks:
            self._log_event("chunk", "empty_input", file=config.input_file)
            return RunResult(chunk_count=0)

        if len(chunks) > 1 and not self._confirm(len(chunks)):
            self._log_event("dispatch", "cancelled", chunks=len(chunks))
            return RunResult(chunk_count=len(chunks), cancelled=True)

        dispatcher = ChunkDispatcher(
            client=self._create_client(config, api_key),
            rate_limiter=self._rate_limiter_factory(config.rate_limit),
            run_logger=self._run_logger,
        )
        outcome = self._run_stage("synthesize", lambda: dispatcher.process(chunks, config))

        if not (config.combine_files and len(chunks) > 1 and outcome.manifest_path is not None):
            return RunResult(
                chunk_count=len(chunks),
                output_files=outcome.output_files,
                ledger=outcome.ledger,
                final_output=outcome.output_files[0] if len(chunks) == 1 else None,
            )

        manifest_path = outcome.manifest_path
        combined = self._run_stage(
            "combine",
            lambda: self._combiner.combine(config.output_file, manifest_path, outcome.ledger),
        )
        return RunResult(
            chunk_count=len(chunks),
            output_files=outcome.output_files,
            ledger=outcome.ledger,
            final_output=combined.output_path,
            combined=True,
            cleanup_failures=combined.cleanup_failures,
        )

    def _validate_config(self, config: TTSConfig) -> None:
        try:
            config.validate()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint="Run `ttscli convert --help` for supported values.",
            ) from exc

    def _read_input(self, input_file: Path) -> str:
        """Read the whole input file as UTF-8 text."""

        try:
            return input_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PipelineStageError(
                stage="read",
                detail=f"Error reading input file `{input_file}`: {exc}",
                hint="Verify the input path exists and is UTF-8 text.",
            ) from exc

    def _chunk(self, text: str, config: TTSConfig) -> list[Chunk]:
        return self._chunker.split(
            text,
            max_size=config.max_chunk_chars,
            use_buffer=config.buffer_text,
        )

    def _require_api_key(self, config: TTSConfig) -> str:
        api_key = config.resolved_api_key()
        if api_key is None:
            raise PipelineStageError(
                stage="credentials",
                detail="Missing OpenAI API key.",
                hint=(
                    "Run `ttscli configure`, set `OPENAI_API_KEY`, or pass `--api-key` / "
                    "`--prompt-api-key`."
                ),
            )
        return api_key

    def _create_client(self, config: TTSConfig, api_key: str) -> OpenAISpeechClient:
        transport = self._transport if self._transport is not None else RequestsTransport()
        return OpenAISpeechClient(
            api_key=api_key,
            transport=transport,
            timeout_seconds=config.timeout_seconds,
        )

    def _run_stage(self, stage: str, action: Callable[[], T]) -> T:
        """Run one stage with start/complete/failure logging."""

        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage)
        try:
            result = action()
        except PipelineStageError as exc:
            if self._run_logger is not None:
                self._run_logger.log_stage_failure(exc.stage, type(exc.__cause__ or exc).__name__)
            raise
        if self._run_logger is not None:
            self._run_logger.log_stage_complete(stage)
        return result

    def _log_event(self, stage: str, event: str, **context: object) -> None:
        if self._run_logger is not None:
            self._run_logger.log_event(stage, event, **context)
