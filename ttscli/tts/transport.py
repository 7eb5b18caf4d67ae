"""HTTP transport abstraction for provider calls.

Responsibilities:
- Define the minimal "send a request, get a response or failure" contract.
- Provide the `requests`-backed implementation used outside tests.
- Map network-layer failures to one transport exception type.
"""

from __future__ import annotations

import socket
from collections.abc import Iterator, Mapping
from typing import Protocol

import requests

DEFAULT_TIMEOUT_SECONDS = 90.0
_STREAM_CHUNK_BYTES = 64 * 1024


class TransportError(RuntimeError):
    """Raised when a request could not be completed at the network layer."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        """Initialize transport failure metadata."""

        super().__init__(message)
        self.timed_out = timed_out


class TransportResponse(Protocol):
    """Response handle returned by a transport."""

    status_code: int

    def iter_bytes(self) -> Iterator[bytes]:
        """Yield the response body in order."""

    def read(self) -> bytes:
        """Return the full remaining response body."""

    def close(self) -> None:
        """Release the underlying connection."""

    def __enter__(self) -> TransportResponse:
        """Return the response for scoped use."""

    def __exit__(self, *exc_info: object) -> None:
        """Close the response on scope exit."""


class Transport(Protocol):
    """Capability for sending one HTTP request."""

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: bytes,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> TransportResponse:
        """Send a request and return its response, or raise `TransportError`."""


class RequestsResponse:
    """`TransportResponse` adapter around a streamed `requests.Response`."""

    def __init__(self, response: requests.Response) -> None:
        """Wrap a streamed response."""

        self._response = response
        self.status_code = response.status_code

    def iter_bytes(self) -> Iterator[bytes]:
        """Yield body blocks, mapping mid-stream failures to `TransportError`."""

        try:
            for block in self._response.iter_content(chunk_size=_STREAM_CHUNK_BYTES):
                if block:
                    yield block
        except requests.RequestException as exc:
            raise _transport_error(exc) from exc

    def read(self) -> bytes:
        """Return the full remaining body."""

        return b"".join(self.iter_bytes())

    def close(self) -> None:
        """Release the pooled connection."""

        self._response.close()

    def __enter__(self) -> RequestsResponse:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class RequestsTransport:
    """`requests`-backed transport with streamed response bodies."""

    def __init__(self, session: requests.Session | None = None) -> None:
        """Initialize with an optional shared session."""

        self._session = session if session is not None else requests.Session()

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: bytes,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> RequestsResponse:
        """Send one request with streaming enabled."""

        try:
            response = self._session.request(
                method,
                url,
                headers=dict(headers),
                data=body,
                timeout=timeout,
                stream=True,
            )
        except requests.RequestException as exc:
            raise _transport_error(exc) from exc
        except TimeoutError as exc:
            raise TransportError(f"request timed out after {timeout:g}s", timed_out=True) from exc
        return RequestsResponse(response)


def _transport_error(exc: BaseException) -> TransportError:
    timed_out = isinstance(exc, (TimeoutError, socket.timeout, requests.Timeout))
    return TransportError(" ".join(str(exc).split()) or type(exc).__name__, timed_out=timed_out)
