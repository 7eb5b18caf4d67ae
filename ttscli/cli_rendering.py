"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
run summaries, and version information.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import RunResult


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
        if exc.created_files:
            typer.secho("Files kept from earlier steps:", fg=typer.colors.YELLOW, err=True)
            for path in exc.created_files:
                typer.secho(f"  {path}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_run_summary(result: RunResult) -> None:
    """Print produced files and any cleanup warnings for a finished run."""

    if result.cancelled:
        typer.echo("Operation cancelled.")
        return
    if result.chunk_count == 0:
        typer.echo("Input file is empty; nothing to synthesize.")
        return

    if result.combined and result.final_output is not None:
        typer.echo(f"Combined audio: {result.final_output}")
    else:
        for path in result.output_files:
            typer.echo(f"Audio file saved successfully: {path}")
    for failure in result.cleanup_failures:
        typer.secho(
            f"Warning: could not delete `{failure.path}`: {failure.reason}",
            fg=typer.colors.YELLOW,
            err=True,
        )


def format_version(tool: str, version: str) -> str:
    """Return the multi-line version banner."""

    return (
        f"{tool}: Version {version}\n"
        "\n"
        "License:        MIT - No Warranty\n"
        "Speech engine:  OpenAI /v1/audio/speech\n"
        "\n"
        "Converts text and Markdown files into speech audio."
    )
