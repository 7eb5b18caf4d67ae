"""Shared typed data models for ttscli.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    BUFFER_EPILOGUE,
    BUFFER_PROLOGUE,
    Chunk,
    CleanupFailure,
    CombineResult,
    DispatchOutcome,
    RunResult,
    SynthesisRequest,
)

__all__ = [
    "BUFFER_EPILOGUE",
    "BUFFER_PROLOGUE",
    "Chunk",
    "CleanupFailure",
    "CombineResult",
    "DispatchOutcome",
    "RunResult",
    "SynthesisRequest",
]
