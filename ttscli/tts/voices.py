"""Speech selector catalog for the OpenAI speech endpoint.

Responsibilities:
- Enumerate supported voices, models, and output formats.
- Bundle per-run selector values into one declarative settings record.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_VOICES = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
SUPPORTED_MODELS = ("tts-1", "tts-1-hd")
SUPPORTED_FORMATS = ("mp3", "opus", "aac", "flac", "wav", "pcm")

DEFAULT_VOICE = "nova"
DEFAULT_MODEL = "tts-1-hd"
DEFAULT_FORMAT = "mp3"
DEFAULT_SPEED = 1.0
MIN_SPEED = 0.25
MAX_SPEED = 4.0


@dataclass(frozen=True, slots=True)
class SpeechSettings:
    """Voice, model, format, and speed selection shared by every chunk request.

    Attributes:
        voice: Provider voice identifier.
        model: Provider model identifier.
        response_format: Output audio format, also used as file extension.
        speed: Speech speed multiplier in `[0.25, 4.0]`.
    """

    voice: str = DEFAULT_VOICE
    model: str = DEFAULT_MODEL
    response_format: str = DEFAULT_FORMAT
    speed: float = DEFAULT_SPEED

    def validate(self) -> None:
        """Validate selectors against the supported catalog."""

        _require_choice(self.voice, SUPPORTED_VOICES, "voice")
        _require_choice(self.model, SUPPORTED_MODELS, "model")
        _require_choice(self.response_format, SUPPORTED_FORMATS, "response_format")
        if not MIN_SPEED <= self.speed <= MAX_SPEED:
            raise ValueError(
                f"`speed` must be between {MIN_SPEED} and {MAX_SPEED}, got {self.speed}."
            )


def _require_choice(value: str, choices: tuple[str, ...], field_name: str) -> None:
    if value not in choices:
        supported = ", ".join(choices)
        raise ValueError(f"Unsupported `{field_name}` value `{value}`; supported: {supported}.")
