"""Configuration model and loaders for ttscli.

Responsibilities:
- Define run configuration as a typed dataclass passed into the pipeline.
- Resolve the API key with deterministic source precedence.
- Provide loader entry points for YAML- and environment-based configuration.

Key types:
- `TTSConfig`: normalized settings for one conversion run.
- `RuntimeConfigSources`: optional value sources for API-key precedence.
- `ConfigLoader`: static construction helpers for `TTSConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .io.storage import concat_list_path_for
from .parsing import (
    normalize_optional_string,
    parse_finite_float,
    parse_non_negative_int,
    parse_required_boolean,
)
from .text.chunking import API_MAX_CHARACTERS, calculate_chunk_size
from .tts.transport import DEFAULT_TIMEOUT_SECONDS
from .tts.voices import (
    DEFAULT_FORMAT,
    DEFAULT_MODEL,
    DEFAULT_SPEED,
    DEFAULT_VOICE,
    SpeechSettings,
)


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for API-key precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments or prompts.
        secure: Values loaded from secure credential storage.
        env: Values loaded from environment variables.
        key_file: Values loaded from the legacy plain-text key file.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    key_file: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class TTSConfig:
    """Runtime configuration for one conversion run.

    Attributes:
        input_file: Text or Markdown file to synthesize.
        output_file: Requested output audio path.
        voice: Provider voice identifier.
        model: Provider model identifier.
        response_format: Output audio format, also the chunk file extension.
        speed: Speech speed multiplier.
        buffer_text: Wrap each chunk in buffer framing text.
        rate_limit: Maximum requests per minute; `0` disables pacing.
        combine_files: Merge multi-chunk output into `output_file` via ffmpeg.
        max_chunk_chars: Provider input limit per request, framing included.
        timeout_seconds: Per-request transport timeout.
        api_key: Optional API key (lowest-precedence source).
        runtime_sources: Source overrides injected by the CLI.
    """

    input_file: Path
    output_file: Path
    voice: str = DEFAULT_VOICE
    model: str = DEFAULT_MODEL
    response_format: str = DEFAULT_FORMAT
    speed: float = DEFAULT_SPEED
    buffer_text: bool = False
    rate_limit: int = 0
    combine_files: bool = False
    max_chunk_chars: int = API_MAX_CHARACTERS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    api_key: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def speech_settings(self) -> SpeechSettings:
        """Return the selector bundle shared by every chunk request."""

        return SpeechSettings(
            voice=self.voice,
            model=self.model,
            response_format=self.response_format,
            speed=self.speed,
        )

    def validate(self) -> None:
        """Validate configuration values before pipeline execution."""

        self.speech_settings().validate()
        if self.rate_limit < 0:
            raise ValueError("`rate_limit` must be a non-negative integer.")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be positive.")
        calculate_chunk_size(self.max_chunk_chars, self.buffer_text)
        if self.combine_files and self.output_file.suffix.lower() == ".txt":
            raise ValueError(
                "`output_file` cannot use the `.txt` suffix when combining; "
                "that name is reserved for the concat list."
            )
        if (
            self.combine_files
            and concat_list_path_for(self.output_file).resolve() == self.input_file.resolve()
        ):
            raise ValueError(
                f"`input_file` `{self.input_file}` would be overwritten by the concat list "
                "written when combining; choose a different output name."
            )

    def resolved_api_key(self, sources: RuntimeConfigSources | None = None) -> str | None:
        """Resolve the API key with deterministic source precedence.

        Precedence is `cli` > `secure` > `env` (`OPENAI_API_KEY`) >
        `key_file` > config field.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        for mapping, key in (
            (resolved_sources.cli, "api_key"),
            (resolved_sources.secure, "api_key"),
            (resolved_sources.env, "OPENAI_API_KEY"),
            (resolved_sources.key_file, "OPENAI_API_KEY"),
        ):
            value = _normalized_lookup(mapping, key)
            if value is not None:
                return value
        return normalize_optional_string(self.api_key)


def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
    """Return a stripped mapping value for a key or `None` when missing/blank."""

    if key not in mapping:
        return None
    return normalize_optional_string(mapping.get(key))


class ConfigLoader:
    """Factory methods for creating `TTSConfig` from external sources."""

    _SUPPORTED_KEYS = frozenset(
        {
            "input_file",
            "output_file",
            "voice",
            "model",
            "response_format",
            "speed",
            "buffer_text",
            "rate_limit",
            "combine_files",
            "max_chunk_chars",
            "timeout_seconds",
            "api_key",
        }
    )
    _ENV_KEYS = {
        "TTSCLI_INPUT_FILE": "input_file",
        "TTSCLI_OUTPUT_FILE": "output_file",
        "TTSCLI_VOICE": "voice",
        "TTSCLI_MODEL": "model",
        "TTSCLI_FORMAT": "response_format",
        "TTSCLI_SPEED": "speed",
        "TTSCLI_BUFFER_TEXT": "buffer_text",
        "TTSCLI_RATE_LIMIT": "rate_limit",
        "TTSCLI_COMBINE_FILES": "combine_files",
        "TTSCLI_MAX_CHUNK_CHARS": "max_chunk_chars",
        "TTSCLI_TIMEOUT_SECONDS": "timeout_seconds",
    }

    @staticmethod
    def load_yaml_values(path: Path) -> dict[str, Any]:
        """Read and key-check a YAML config file without requiring paths."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        ConfigLoader._validate_keys(payload, f"YAML `{path}`")
        return dict(payload)

    @staticmethod
    def from_yaml(path: Path) -> TTSConfig:
        """Create a validated config from a YAML file."""

        return ConfigLoader.from_mapping(
            ConfigLoader.load_yaml_values(path), source_label=f"YAML `{path}`"
        )

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> TTSConfig:
        """Create a validated config from `TTSCLI_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload = {
            field_name: env_map[env_key]
            for env_key, field_name in ConfigLoader._ENV_KEYS.items()
            if normalize_optional_string(env_map.get(env_key)) is not None
        }
        config = ConfigLoader.from_mapping(payload, source_label="environment")
        config.runtime_sources = RuntimeConfigSources(env=env_map)
        return config

    @staticmethod
    def from_mapping(payload: Mapping[str, Any], source_label: str) -> TTSConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_keys(payload, source_label)
        config = TTSConfig(
            input_file=ConfigLoader._required_path(payload, "input_file", source_label),
            output_file=ConfigLoader._required_path(payload, "output_file", source_label),
            voice=ConfigLoader._optional_string(payload, "voice") or DEFAULT_VOICE,
            model=ConfigLoader._optional_string(payload, "model") or DEFAULT_MODEL,
            response_format=(
                ConfigLoader._optional_string(payload, "response_format") or DEFAULT_FORMAT
            ).lower(),
            speed=(
                parse_finite_float(payload["speed"], "speed")
                if payload.get("speed") is not None
                else DEFAULT_SPEED
            ),
            buffer_text=ConfigLoader._optional_boolean(payload, "buffer_text"),
            rate_limit=(
                parse_non_negative_int(payload["rate_limit"], "rate_limit")
                if payload.get("rate_limit") is not None
                else 0
            ),
            combine_files=ConfigLoader._optional_boolean(payload, "combine_files"),
            max_chunk_chars=(
                parse_non_negative_int(payload["max_chunk_chars"], "max_chunk_chars")
                if payload.get("max_chunk_chars") is not None
                else API_MAX_CHARACTERS
            ),
            timeout_seconds=(
                parse_finite_float(payload["timeout_seconds"], "timeout_seconds")
                if payload.get("timeout_seconds") is not None
                else DEFAULT_TIMEOUT_SECONDS
            ),
            api_key=ConfigLoader._optional_string(payload, "api_key"),
        )
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"Invalid {source_label} configuration: {exc}") from exc
        return config

    @staticmethod
    def _validate_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject unknown keys so typos surface instead of silently defaulting."""

        unknown = sorted(str(key) for key in payload if key not in ConfigLoader._SUPPORTED_KEYS)
        if unknown:
            raise ValueError(
                f"{source_label} contains unsupported keys: {', '.join(unknown)}."
            )

    @staticmethod
    def _required_path(payload: Mapping[str, Any], key: str, source_label: str) -> Path:
        """Return a required path value or raise an actionable error."""

        value = normalize_optional_string(payload.get(key))
        if value is None:
            raise ValueError(f"{source_label} is missing required `{key}`.")
        return Path(value)

    @staticmethod
    def _optional_string(payload: Mapping[str, Any], key: str) -> str | None:
        return normalize_optional_string(payload.get(key))

    @staticmethod
    def _optional_boolean(payload: Mapping[str, Any], key: str) -> bool:
        value = payload.get(key)
        if value is None:
            return False
        return parse_required_boolean(value, key)
