"""Audio combination components."""

from .merger import FfmpegConcatCombiner

__all__ = ["FfmpegConcatCombiner"]
