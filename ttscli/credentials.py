"""Credential storage helpers for the ttscli CLI.

Responsibilities:
- Persist the OpenAI API key in an OS-backed secure credential store.
- Read and write the legacy `~/.cli-tools/tts.config` key file.
- Avoid logging or exposing secret values in diagnostics.

Key types:
- `CredentialStore`: interface for API key persistence.
- `KeyringCredentialStore`: keyring-backed secure credential storage.
- `KeyFileCredentialStore`: plain-text key file with owner-only permissions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

import keyring
from keyring.backends import fail as keyring_fail
from keyring.errors import KeyringError


_DEFAULT_SERVICE_NAME = "ttscli"
_DEFAULT_ACCOUNT_NAME = "openai_api_key"
KEY_FILE_DIR = ".cli-tools"
KEY_FILE_NAME = "tts.config"
KEY_FILE_ENTRY = "OPENAI_API_KEY"


class CredentialStore:
    """Interface for provider credential operations."""

    def is_available(self) -> bool:
        """Return whether credential operations are available."""

        raise NotImplementedError

    def get_api_key(self) -> str | None:
        """Load the stored API key, when available."""

        raise NotImplementedError

    def set_api_key(self, api_key: str) -> None:
        """Persist an API key."""

        raise NotImplementedError

    def clear_api_key(self) -> bool:
        """Delete a stored API key and return whether one existed."""

        raise NotImplementedError


def _normalize_api_key(api_key: str) -> str:
    normalized = api_key.strip()
    if not normalized:
        raise ValueError("API key must be a non-empty string.")
    return normalized


@dataclass(slots=True)
class KeyringCredentialStore(CredentialStore):
    """Secure credential store backed by the `keyring` package."""

    service_name: str = _DEFAULT_SERVICE_NAME
    account_name: str = _DEFAULT_ACCOUNT_NAME

    def _load_keyring_module(self):
        """Return the `keyring` module used for storage calls."""

        return keyring

    def is_available(self) -> bool:
        """Return `False` when only keyring's fail-backend is configured."""

        backend = self._load_keyring_module().get_keyring()
        return not isinstance(backend, keyring_fail.Keyring)

    def get_api_key(self) -> str | None:
        """Get a normalized API key from keyring, returning `None` when missing."""

        try:
            value = self._load_keyring_module().get_password(
                self.service_name, self.account_name
            )
        except KeyringError:
            return None
        if value is None:
            return None
        return value.strip() or None

    def set_api_key(self, api_key: str) -> None:
        """Persist a normalized API key in keyring."""

        normalized = _normalize_api_key(api_key)
        try:
            self._load_keyring_module().set_password(
                self.service_name, self.account_name, normalized
            )
        except KeyringError as exc:
            raise RuntimeError(f"Secure credential storage rejected the API key: {exc}") from exc

    def clear_api_key(self) -> bool:
        """Remove the stored API key from keyring and report if one was present."""

        if self.get_api_key() is None:
            return False
        self._load_keyring_module().delete_password(self.service_name, self.account_name)
        return True


def default_key_file_path() -> Path:
    """Return the legacy key file location under the user's home directory."""

    return Path.home() / KEY_FILE_DIR / KEY_FILE_NAME


@dataclass(slots=True)
class KeyFileCredentialStore(CredentialStore):
    """Credential store backed by a `OPENAI_API_KEY=<key>` text file."""

    path: Path = field(default_factory=default_key_file_path)

    def is_available(self) -> bool:
        """The key file store works wherever the home directory is writable."""

        return True

    def get_api_key(self) -> str | None:
        """Read the key entry from the file, returning `None` when absent."""

        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        for line in content.splitlines():
            key, separator, value = line.partition("=")
            if separator and key.strip() == KEY_FILE_ENTRY:
                return value.strip() or None
        return None

    def set_api_key(self, api_key: str) -> None:
        """Write the key file with owner-only permissions."""

        normalized = _normalize_api_key(api_key)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
            handle.write(f"{KEY_FILE_ENTRY}={normalized}")
        os.chmod(self.path, 0o600)

    def clear_api_key(self) -> bool:
        """Delete the key file when it holds a key."""

        if self.get_api_key() is None:
            return False
        self.path.unlink()
        return True

    def as_source_mapping(self) -> dict[str, str]:
        """Return the stored key as a runtime source mapping."""

        api_key = self.get_api_key()
        return {KEY_FILE_ENTRY: api_key} if api_key is not None else {}


def create_credential_store() -> CredentialStore:
    """Create the default secure credential store implementation."""

    return KeyringCredentialStore()


def create_key_file_store() -> KeyFileCredentialStore:
    """Create the legacy key file store at its default location."""

    return KeyFileCredentialStore()
