"""Input-text-to-chunk segmentation logic.

Responsibilities:
- Split input text into bounded chunks for provider calls.
- Keep word boundaries intact whenever a whitespace split point exists.
- Apply optional buffer framing without exceeding the provider limit.
"""

from __future__ import annotations

from ..models.datatypes import BUFFER_EPILOGUE, BUFFER_PROLOGUE, Chunk

API_MAX_CHARACTERS = 4096
BUFFER_FRAMING_LENGTH = len(BUFFER_PROLOGUE) + len(BUFFER_EPILOGUE)


def calculate_chunk_size(max_size: int = API_MAX_CHARACTERS, use_buffer: bool = False) -> int:
    """Return the core-text budget per chunk for the given framing mode.

    Raises:
        ValueError: If no positive budget remains after framing.
    """

    if max_size <= 0:
        raise ValueError("`max_size` must be a positive integer.")
    budget = max_size - BUFFER_FRAMING_LENGTH if use_buffer else max_size
    if budget <= 0:
        raise ValueError(
            f"`max_size` {max_size} leaves no room for text after "
            f"{BUFFER_FRAMING_LENGTH} characters of buffer framing."
        )
    return budget


def split_into_chunks(text: str, chunk_size: int) -> list[str]:
    """Split text into pieces no longer than `chunk_size` characters.

    Each split falls on the nearest whitespace at or before `chunk_size`;
    the whitespace starts the next piece. Text with no usable whitespace is
    split exactly at `chunk_size`. Joining the pieces yields `text`.
    """

    if chunk_size <= 0:
        raise ValueError("`chunk_size` must be a positive integer.")

    pieces: list[str] = []
    remaining = text
    while len(remaining) > chunk_size:
        split_index = _backward_whitespace_index(remaining, chunk_size)
        pieces.append(remaining[:split_index])
        remaining = remaining[split_index:]
    if remaining:
        pieces.append(remaining)
    return pieces


def _backward_whitespace_index(text: str, chunk_size: int) -> int:
    for index in range(chunk_size, 0, -1):
        if text[index].isspace():
            return index
    return chunk_size


def add_buffer_text(chunks: list[str]) -> list[str]:
    """Wrap every chunk in the buffer prologue and epilogue."""

    return [f"{BUFFER_PROLOGUE}{chunk}{BUFFER_EPILOGUE}" for chunk in chunks]


def strip_buffer_text(text: str) -> str:
    """Remove buffer framing added by `add_buffer_text`, if present."""

    if (
        len(text) >= BUFFER_FRAMING_LENGTH
        and text.startswith(BUFFER_PROLOGUE)
        and text.endswith(BUFFER_EPILOGUE)
    ):
        return text[len(BUFFER_PROLOGUE) : len(text) - len(BUFFER_EPILOGUE)]
    return text


class Chunker:
    """Create word-boundary chunks with a forced-split fallback."""

    def split(
        self,
        text: str,
        max_size: int = API_MAX_CHARACTERS,
        use_buffer: bool = False,
    ) -> list[Chunk]:
        """Split input text into chunk records.

        Args:
            text: Full input text.
            max_size: Maximum submitted length per chunk, framing included.
            use_buffer: Whether each chunk is wrapped in buffer framing.

        Returns:
            Ordered chunk list; empty when `text` is empty.
        """

        budget = calculate_chunk_size(max_size, use_buffer)
        return [
            Chunk(index=index, text=piece, framed=use_buffer)
            for index, piece in enumerate(split_into_chunks(text, budget))
        ]
