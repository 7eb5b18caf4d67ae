"""Shared pytest fixtures for the full ttscli test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.doubles import ScriptedTransport


@pytest.fixture
def transport() -> ScriptedTransport:
    """Provide a transport that answers every request with `200 audio`."""

    return ScriptedTransport()


@pytest.fixture
def long_text() -> str:
    """Provide text spanning several 30-character chunks."""

    return "The quick brown fox jumps over the lazy dog. " * 4


@pytest.fixture
def input_file(tmp_path: Path, long_text: str) -> Path:
    """Write the multi-chunk sample text to a file."""

    path = tmp_path / "input.md"
    path.write_text(long_text, encoding="utf-8")
    return path
