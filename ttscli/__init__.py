"""Top-level package for ttscli.

This package converts text and Markdown files into speech audio through the
OpenAI speech endpoint, splitting long inputs into API-sized chunks. The main
orchestration entry point is `TTSPipeline`.
"""

__version__ = "1.3.0"

from .pipeline import TTSPipeline

__all__ = ["TTSPipeline", "__version__"]
