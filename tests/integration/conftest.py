"""Integration-test fixtures isolating the CLI from network, keyring, and ffmpeg."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from ttscli import cli
from ttscli.audio import merger
from ttscli.credentials import KeyFileCredentialStore
from ttscli.pipeline import orchestrator

from tests.doubles import MemoryCredentialStore, ScriptedTransport


@pytest.fixture
def cli_transport(monkeypatch: pytest.MonkeyPatch) -> ScriptedTransport:
    """Route every CLI request through one scripted transport."""

    transport = ScriptedTransport()
    monkeypatch.setattr(cli, "RequestsTransport", lambda: transport)
    return transport


@pytest.fixture
def secure_store(monkeypatch: pytest.MonkeyPatch) -> MemoryCredentialStore:
    """Replace the system keyring with an in-memory store."""

    store = MemoryCredentialStore()
    monkeypatch.setattr(cli, "create_credential_store", lambda: store)
    return store


@pytest.fixture
def key_file_store(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> KeyFileCredentialStore:
    """Point the legacy key file at a temporary home directory."""

    store = KeyFileCredentialStore(path=tmp_path / "home" / ".cli-tools" / "tts.config")
    monkeypatch.setattr(cli, "create_key_file_store", lambda: store)
    return store


@pytest.fixture(autouse=True)
def _isolated_cli(
    monkeypatch: pytest.MonkeyPatch,
    cli_transport: ScriptedTransport,
    secure_store: MemoryCredentialStore,
    key_file_store: KeyFileCredentialStore,
) -> None:
    """Keep ambient credentials out of every CLI run."""

    _ = (cli_transport, secure_store, key_file_store)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def ffmpeg_calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Pretend ffmpeg is installed and record concat invocations."""

    calls: list[list[str]] = []

    def _runner(command: list[str], **_kwargs: object) -> subprocess.CompletedProcess[str]:
        calls.append(command)
        Path(command[-1]).write_bytes(b"combined audio")
        return subprocess.CompletedProcess(command, 0, "", "")

    def _combiner(run_logger: object = None) -> merger.FfmpegConcatCombiner:
        return merger.FfmpegConcatCombiner(runner=_runner, run_logger=run_logger)  # type: ignore[arg-type]

    monkeypatch.setattr(merger, "is_executable_available", lambda _name: True)
    monkeypatch.setattr(merger, "resolve_executable", lambda name: name)
    monkeypatch.setattr(orchestrator, "FfmpegConcatCombiner", _combiner)
    return calls
