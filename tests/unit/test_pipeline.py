"""Unit tests for end-to-end pipeline orchestration with injected collaborators."""

from __future__ import annotations

import io
from collections.abc import Sequence
from pathlib import Path

import pytest

from ttscli.config import TTSConfig
from ttscli.errors import PipelineStageError
from ttscli.models.datatypes import CombineResult
from ttscli.pipeline import TTSPipeline
from ttscli.telemetry.logger import RunLogger

from tests.doubles import ScriptedTransport


class _FakeCombiner:
    """Combiner double recording calls and optionally failing pre-flight."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.calls: list[tuple[Path, Path, tuple[Path, ...]]] = []

    def check_available(self) -> None:
        if not self.available:
            raise PipelineStageError(stage="preflight", detail="`ffmpeg` is not installed.")

    def combine(self, output_path: Path, manifest_path: Path, ledger: Sequence[Path]) -> CombineResult:
        self.calls.append((output_path, manifest_path, tuple(ledger)))
        output_path.write_bytes(b"combined")
        return CombineResult(output_path=output_path, removed=tuple(ledger))


def _config(input_file: Path, tmp_path: Path, **overrides: object) -> TTSConfig:
    values: dict[str, object] = {
        "input_file": input_file,
        "output_file": tmp_path / "speech.mp3",
        "max_chunk_chars": 30,
        "api_key": "sk-pipeline-secret",
    }
    values.update(overrides)
    return TTSConfig(**values)  # type: ignore[arg-type]


def test_single_chunk_run_writes_requested_output(tmp_path: Path) -> None:
    """Short input should produce exactly the requested output file."""

    input_file = tmp_path / "short.md"
    input_file.write_text("Hello world", encoding="utf-8")
    transport = ScriptedTransport(script=[(200, b"Mock audio data")])

    result = TTSPipeline(transport=transport).run(_config(input_file, tmp_path))

    assert result.chunk_count == 1
    assert result.final_output == tmp_path / "speech.mp3"
    assert (tmp_path / "speech.mp3").read_bytes() == b"Mock audio data"
    assert transport.sent[0].json()["input"] == "Hello world"


def test_multi_chunk_run_sends_every_chunk_in_order(
    input_file: Path,
    long_text: str,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Every chunk should be sent once and the inputs should rebuild the text."""

    confirmed: list[int] = []

    def _confirm(count: int) -> bool:
        confirmed.append(count)
        return True

    result = TTSPipeline(transport=transport, confirm=_confirm).run(_config(input_file, tmp_path))

    assert result.chunk_count > 1
    assert confirmed == [result.chunk_count]
    assert len(transport.sent) == result.chunk_count
    assert "".join(request.json()["input"] for request in transport.sent) == long_text
    assert all(len(request.json()["input"]) <= 30 for request in transport.sent)
    assert all(path.exists() for path in result.output_files)
    assert result.final_output is None


def test_buffered_chunks_stay_within_provider_limit(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Framed payloads should include buffer words without exceeding the limit."""

    TTSPipeline(transport=transport).run(
        _config(input_file, tmp_path, max_chunk_chars=40, buffer_text=True)
    )

    inputs = [request.json()["input"] for request in transport.sent]
    assert all(text.startswith("Begin Text\n") for text in inputs)
    assert all(text.endswith("\nEnd Text") for text in inputs)
    assert all(len(text) <= 40 for text in inputs)


def test_declined_confirmation_creates_no_files(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Declining the multi-file prompt should cancel before any request."""

    pipeline = TTSPipeline(
        transport=transport,
        combiner=_FakeCombiner(),  # type: ignore[arg-type]
        confirm=lambda _count: False,
    )

    result = pipeline.run(_config(input_file, tmp_path, combine_files=True))

    assert result.cancelled is True
    assert transport.sent == []
    assert sorted(path.name for path in tmp_path.iterdir()) == ["input.md"]


def test_combine_run_merges_and_reports_final_output(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Combining should hand the concat list and full ledger to the combiner."""

    combiner = _FakeCombiner()

    result = TTSPipeline(transport=transport, combiner=combiner).run(  # type: ignore[arg-type]
        _config(input_file, tmp_path, combine_files=True)
    )

    output_path, manifest_path, ledger = combiner.calls[0]
    assert output_path == tmp_path / "speech.mp3"
    assert manifest_path == tmp_path / "speech.txt"
    assert ledger[0] == manifest_path
    assert ledger[1:] == result.output_files
    assert result.combined is True
    assert result.final_output == tmp_path / "speech.mp3"


def test_missing_combiner_fails_before_any_request(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """An unavailable ffmpeg should be reported before calling the provider."""

    pipeline = TTSPipeline(transport=transport, combiner=_FakeCombiner(available=False))  # type: ignore[arg-type]

    with pytest.raises(PipelineStageError) as exc_info:
        pipeline.run(_config(input_file, tmp_path, combine_files=True))

    assert exc_info.value.stage == "preflight"
    assert transport.sent == []


def test_missing_api_key_fails_before_any_request(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Runs without any key source should stop at the credentials stage."""

    with pytest.raises(PipelineStageError) as exc_info:
        TTSPipeline(transport=transport).run(_config(input_file, tmp_path, api_key=None))

    assert exc_info.value.stage == "credentials"
    assert exc_info.value.detail == "Missing OpenAI API key."
    assert transport.sent == []


def test_empty_input_produces_no_requests(tmp_path: Path, transport: ScriptedTransport) -> None:
    """An empty input file has nothing to synthesize."""

    input_file = tmp_path / "empty.md"
    input_file.write_text("", encoding="utf-8")

    result = TTSPipeline(transport=transport).run(_config(input_file, tmp_path))

    assert result.chunk_count == 0
    assert transport.sent == []
    assert not (tmp_path / "speech.mp3").exists()


def test_unreadable_input_fails_at_read_stage(tmp_path: Path, transport: ScriptedTransport) -> None:
    """A missing input file should map to the read stage."""

    with pytest.raises(PipelineStageError) as exc_info:
        TTSPipeline(transport=transport).run(_config(tmp_path / "missing.md", tmp_path))

    assert exc_info.value.stage == "read"
    assert "missing.md" in exc_info.value.detail


def test_invalid_config_fails_at_config_stage(tmp_path: Path, transport: ScriptedTransport) -> None:
    """Invalid selectors should be rejected before reading input."""

    with pytest.raises(PipelineStageError) as exc_info:
        TTSPipeline(transport=transport).run(
            _config(tmp_path / "missing.md", tmp_path, voice="robot")
        )

    assert exc_info.value.stage == "config"


def test_rate_limiter_factory_receives_configured_rate(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """The configured calls-per-minute value should build the dispatcher gate."""

    requested: list[int] = []

    class _Gate:
        def acquire(self) -> None:
            return None

    def _factory(calls_per_minute: int) -> _Gate:
        requested.append(calls_per_minute)
        return _Gate()

    TTSPipeline(transport=transport, rate_limiter_factory=_factory).run(  # type: ignore[arg-type]
        _config(input_file, tmp_path, rate_limit=12)
    )

    assert requested == [12]


def test_run_logs_stages_without_secrets(
    input_file: Path,
    tmp_path: Path,
    transport: ScriptedTransport,
) -> None:
    """Phase logs should cover each stage and never contain the API key."""

    sink = io.StringIO()

    TTSPipeline(transport=transport, run_logger=RunLogger(sink=sink)).run(
        _config(input_file, tmp_path)
    )

    output = sink.getvalue()
    for stage in ("read", "chunk", "synthesize"):
        assert f"stage={stage} event=start" in output
        assert f"stage={stage} event=complete" in output
    assert "event=saved" in output
    assert "sk-pipeline-secret" not in output


def test_combining_never_overwrites_txt_input(tmp_path: Path, transport: ScriptedTransport) -> None:
    """A `.txt` input named like the concat list should be rejected and left intact."""

    input_file = tmp_path / "chapter.txt"
    input_file.write_text("The quick brown fox jumps over the lazy dog. " * 4, encoding="utf-8")
    combiner = _FakeCombiner()
    config = _config(
        input_file, tmp_path, output_file=tmp_path / "chapter.mp3", combine_files=True
    )

    with pytest.raises(PipelineStageError) as exc_info:
        TTSPipeline(transport=transport, combiner=combiner).run(config)  # type: ignore[arg-type]

    assert exc_info.value.stage == "config"
    assert "would be overwritten by the concat list" in exc_info.value.detail
    assert input_file.read_text(encoding="utf-8").startswith("The quick brown fox")
    assert transport.sent == []
    assert combiner.calls == []
