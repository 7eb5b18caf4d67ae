"""Command-line interface for ttscli.

Responsibilities:
- Expose user-facing commands for conversion and credential setup.
- Convert CLI arguments into `TTSConfig` and run the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from . import __version__
from .cli_rendering import echo_run_summary, exit_with_command_error, format_version
from .cli_runtime import (
    confirm_multi_file,
    prompt_for_api_key,
    prompt_for_missing_api_key,
    resolve_api_key_sources,
)
from .config import ConfigLoader, TTSConfig
from .credentials import create_credential_store, create_key_file_store
from .errors import PipelineStageError
from .mp3concat import validate_concat_inputs
from .pipeline import TTSPipeline
from .telemetry.logger import RunLogger
from .tts.transport import RequestsTransport
from .tts.voices import SUPPORTED_FORMATS, SUPPORTED_MODELS, SUPPORTED_VOICES

TOOL_NAME = "ttscli"

app = typer.Typer(
    name=TOOL_NAME,
    no_args_is_help=True,
    help="Process text files with OpenAI's Text To Speech API.",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(format_version(TOOL_NAME, f"v{__version__}"))
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Output version information and exit.",
        ),
    ] = False,
) -> None:
    """Process text files with OpenAI's Text To Speech API."""


def _load_yaml_values(config_path: Path | None) -> dict[str, Any]:
    """Load YAML config values when requested and map failures to stage errors."""

    if config_path is None:
        return {}

    try:
        return ConfigLoader.load_yaml_values(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except Exception as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify YAML syntax and file permissions.",
        ) from exc


def _resolve_command_config(
    config_file: Path | None,
    overrides: dict[str, Any],
) -> TTSConfig:
    """Resolve effective config from YAML defaults and explicit CLI overrides."""

    values = _load_yaml_values(config_file)
    values.update({key: value for key, value in overrides.items() if value is not None})

    if values.get("input_file") is None or values.get("output_file") is None:
        raise PipelineStageError(
            stage="config",
            detail="Both an input file and an output file are required.",
            hint="Usage: ttscli convert -f filename.md -o filename.mp3",
        )
    try:
        return ConfigLoader.from_mapping(values, source_label="command")
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Run `ttscli convert --help` for supported values.",
        ) from exc


@app.command("convert")
def convert_command(
    input_file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Input text or Markdown file."),
    ] = None,
    output_file: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output audio file."),
    ] = None,
    voice: Annotated[
        str | None,
        typer.Option(
            "--voice",
            "-v",
            help=f"Voice selection (default: nova). Options: {', '.join(SUPPORTED_VOICES)}.",
        ),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option(
            "--model",
            "-m",
            help=f"Model selection (default: tts-1-hd). Options: {', '.join(SUPPORTED_MODELS)}.",
        ),
    ] = None,
    response_format: Annotated[
        str | None,
        typer.Option(
            "--fmt",
            "--format",
            help=f"Output format (default: mp3). Options: {', '.join(SUPPORTED_FORMATS)}.",
        ),
    ] = None,
    speed: Annotated[
        float | None,
        typer.Option("--speed", "-s", help="Audio speed, 0.25 to 4.0 (default: 1.0)."),
    ] = None,
    buffer_text: Annotated[
        bool,
        typer.Option(
            "--buffer",
            "-b",
            help="Place buffer words at start and end of each chunk.",
        ),
    ] = False,
    rate_limit: Annotated[
        int | None,
        typer.Option(
            "--rate-limit",
            "-r",
            help="Rate limit for API calls per minute (default: unlimited).",
        ),
    ] = None,
    combine_files: Annotated[
        bool,
        typer.Option(
            "--combine",
            "-c",
            help="Combine multiple chunk files into the output file (requires ffmpeg).",
        ),
    ] = False,
    assume_yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the multi-file confirmation prompt."),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to YAML config file with command defaults."),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option(
            "--api-key",
            help="API key override. Prefer `--prompt-api-key` to avoid shell history.",
        ),
    ] = None,
    prompt_api_key: Annotated[
        bool,
        typer.Option("--prompt-api-key", help="Prompt for API key with hidden input."),
    ] = False,
    store_api_key: Annotated[
        bool,
        typer.Option(
            "--store-api-key",
            help="Persist an API key given on this run in secure credential storage.",
        ),
    ] = False,
) -> None:
    """Convert a text file into speech audio, chunking long inputs."""

    try:
        config = _resolve_command_config(
            config_file,
            {
                "input_file": input_file,
                "output_file": output_file,
                "voice": voice,
                "model": model,
                "response_format": response_format,
                "speed": speed,
                "buffer_text": True if buffer_text else None,
                "rate_limit": rate_limit,
                "combine_files": True if combine_files else None,
            },
        )
        config.runtime_sources = resolve_api_key_sources(
            api_key=api_key,
            prompt_api_key=prompt_api_key,
            store_api_key=store_api_key,
            credential_store_factory=create_credential_store,
            key_file_store_factory=create_key_file_store,
        )
        if config.resolved_api_key() is None and not prompt_api_key:
            config.runtime_sources = prompt_for_missing_api_key(
                config.runtime_sources, create_key_file_store
            )
        pipeline = TTSPipeline(
            transport=RequestsTransport(),
            run_logger=RunLogger(),
            confirm=(lambda _count: True) if assume_yes else confirm_multi_file,
        )
        result = pipeline.run(config)
    except Exception as exc:
        exit_with_command_error("convert", exc)

    echo_run_summary(result)


@app.command("configure")
def configure_command(
    key_file: Annotated[
        bool,
        typer.Option(
            "--key-file",
            help="Write the key to `~/.cli-tools/tts.config` instead of the system keyring.",
        ),
    ] = False,
) -> None:
    """Prompt for an OpenAI API key and store it."""

    prompted_api_key = prompt_for_api_key("Please enter your OpenAI API Key")
    if prompted_api_key is None:
        exit_with_command_error(
            "configure",
            PipelineStageError(
                stage="credentials",
                detail="No API key entered.",
                hint="Provide a non-empty API key.",
            ),
        )

    store = create_key_file_store() if key_file else create_credential_store()
    try:
        store.set_api_key(prompted_api_key)
    except Exception as exc:
        exit_with_command_error(
            "configure",
            PipelineStageError(
                stage="credentials",
                detail=f"Unable to save API key: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun with `--key-file`."
                    if not key_file
                    else "Check permissions on your home directory."
                ),
            ),
        )
    destination = "key file" if key_file else "secure credential storage"
    typer.echo(f"API key stored in {destination}.")


@app.command("credentials")
def credentials_command(
    clear_api_key: Annotated[
        bool,
        typer.Option(
            "--clear-api-key",
            help="Clear stored API key from secure storage and the key file.",
        ),
    ] = False,
) -> None:
    """Show or clear stored credentials."""

    credential_store = create_credential_store()
    key_file_store = create_key_file_store()
    if clear_api_key:
        try:
            removed_secure = credential_store.clear_api_key()
            removed_file = key_file_store.clear_api_key()
        except Exception as exc:
            exit_with_command_error("credentials", exc)
        if removed_secure or removed_file:
            typer.echo("Stored API key cleared.")
        else:
            typer.echo("No stored API key found.")
        return

    try:
        availability = "available" if credential_store.is_available() else "unavailable"
        secure_status = "present" if credential_store.get_api_key() is not None else "not set"
        file_status = "present" if key_file_store.get_api_key() is not None else "not set"
    except Exception as exc:
        exit_with_command_error("credentials", exc)
    typer.echo(f"Secure credential storage: {availability}")
    typer.echo(f"Stored OpenAI API key: {secure_status}")
    typer.echo(f"Key file ({key_file_store.path}): {file_status}")


@app.command("mp3concat")
def mp3concat_command(
    files: Annotated[list[str], typer.Argument(help="Input `.mp3` files followed by output.")],
) -> None:
    """Validate `.mp3` concatenation arguments (no audio is joined)."""

    try:
        validated = validate_concat_inputs(files)
    except ValueError as exc:
        exit_with_command_error("mp3concat", exc)
    typer.echo(f"Validated {len(validated)} mp3 files.")


def main() -> None:
    """Run the Typer CLI application."""

    app()


if __name__ == "__main__":
    main()
