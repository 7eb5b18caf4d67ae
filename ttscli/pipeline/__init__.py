"""Pipeline orchestration package."""

from .dispatcher import ChunkDispatcher
from .orchestrator import TTSPipeline

__all__ = ["ChunkDispatcher", "TTSPipeline"]
