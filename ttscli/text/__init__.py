"""Text segmentation components."""

from .chunking import (
    API_MAX_CHARACTERS,
    Chunker,
    add_buffer_text,
    calculate_chunk_size,
    split_into_chunks,
    strip_buffer_text,
)

__all__ = [
    "API_MAX_CHARACTERS",
    "Chunker",
    "add_buffer_text",
    "calculate_chunk_size",
    "split_into_chunks",
    "strip_buffer_text",
]
