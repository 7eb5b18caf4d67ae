"""CLI runtime resolution helpers.

This module isolates API-key prompting, source assembly, secure key
persistence, and the multi-file confirmation prompt from command wiring.
"""

from __future__ import annotations

import os
from dataclasses import replace
from typing import Callable, Mapping, Protocol

import typer

from .config import RuntimeConfigSources
from .credentials import (
    KeyFileCredentialStore,
    create_credential_store,
    create_key_file_store,
)
from .errors import PipelineStageError
from .parsing import normalize_optional_string


class CredentialStoreProtocol(Protocol):
    """Protocol for credential store operations used by CLI runtime resolution."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value."""


def prompt_for_api_key(label: str = "OpenAI API key (hidden; leave blank to skip)") -> str | None:
    """Prompt for an API key with hidden input."""

    return normalize_optional_string(
        typer.prompt(label, default="", hide_input=True, show_default=False)
    )


def resolve_api_key_sources(
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
    key_file_store_factory: Callable[[], KeyFileCredentialStore] = create_key_file_store,
    env: Mapping[str, str] | None = None,
) -> RuntimeConfigSources:
    """Assemble API-key sources from CLI input, keyring, env, and the key file."""

    runtime_cli_values: dict[str, str] = {}
    normalized_cli_key = normalize_optional_string(api_key)
    if normalized_cli_key is not None:
        runtime_cli_values["api_key"] = normalized_cli_key
    elif prompt_api_key:
        prompted_api_key = prompt_for_api_key()
        if prompted_api_key is not None:
            runtime_cli_values["api_key"] = prompted_api_key

    credential_store = credential_store_factory()
    runtime_secure_values: dict[str, str] = {}
    stored_api_key = credential_store.get_api_key()
    if stored_api_key is not None:
        runtime_secure_values["api_key"] = stored_api_key

    if "api_key" in runtime_cli_values and store_api_key:
        try:
            credential_store.set_api_key(runtime_cli_values["api_key"])
        except Exception as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun without "
                    "`--store-api-key`."
                ),
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    try:
        key_file_values = key_file_store_factory().as_source_mapping()
    except OSError as exc:
        raise PipelineStageError(
            stage="credentials",
            detail=f"Unable to read the API key file: {exc}",
            hint="Fix the key file permissions or run `ttscli configure --key-file` again.",
        ) from exc

    return RuntimeConfigSources(
        cli=runtime_cli_values,
        secure=runtime_secure_values,
        env=os.environ if env is None else env,
        key_file=key_file_values,
    )


def prompt_for_missing_api_key(
    sources: RuntimeConfigSources,
    key_file_store_factory: Callable[[], KeyFileCredentialStore] = create_key_file_store,
) -> RuntimeConfigSources:
    """Ask once for an API key when no source has one and save it to the key file.

    A blank answer leaves `sources` unchanged so the run fails at the
    credentials stage.
    """

    prompted_api_key = prompt_for_api_key("Please enter your OpenAI API Key")
    if prompted_api_key is None:
        return sources

    store = key_file_store_factory()
    try:
        store.set_api_key(prompted_api_key)
    except OSError as exc:
        raise PipelineStageError(
            stage="credentials",
            detail=f"Unable to save API key to `{store.path}`: {exc}",
            hint="Check permissions on your home directory or pass `--api-key`.",
        ) from exc
    typer.echo(f"API key stored in key file `{store.path}`.")
    return replace(sources, cli={**sources.cli, "api_key": prompted_api_key})


def confirm_multi_file(chunk_count: int) -> bool:
    """Ask whether a run producing `chunk_count` files should continue."""

    return typer.confirm(
        f"This will create {chunk_count} files. Are you sure you wish to continue?",
        default=False,
    )
