"""OpenAI speech client built on the injectable transport.

Responsibilities:
- Send speech requests to OpenAI's `/audio/speech` endpoint.
- Hand back the streamed response body on success.
- Raise actionable provider exceptions carrying status code and body verbatim.
"""

from __future__ import annotations

import json
import re

from ..models.datatypes import SynthesisRequest
from .request_builder import encode_request
from .transport import DEFAULT_TIMEOUT_SECONDS, Transport, TransportError, TransportResponse

SPEECH_ENDPOINT = "https://api.openai.com/v1/audio/speech"


class OpenAIProviderError(RuntimeError):
    """Raised when an OpenAI speech request fails."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.body = body


class OpenAISpeechClient:
    """Minimal OpenAI speech client that streams audio responses."""

    def __init__(
        self,
        *,
        api_key: str | None,
        transport: Transport,
        endpoint: str = SPEECH_ENDPOINT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize client settings and the transport used for every call."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.transport = transport
        self.endpoint = endpoint
        self.timeout_seconds = timeout_seconds

    def open_speech_stream(self, request: SynthesisRequest) -> TransportResponse:
        """POST one speech request and return the successful response handle.

        The caller owns the returned response and must close it.

        Raises:
            OpenAIProviderError: On a missing key, transport failure, or non-200 status.
        """

        self._require_api_key()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.transport.send(
                "POST",
                self.endpoint,
                headers=headers,
                body=encode_request(request),
                timeout=self.timeout_seconds,
            )
        except TransportError as exc:
            raise OpenAIProviderError(
                f"unable to send request to OpenAI API: {exc}",
                failure_kind="timeout" if exc.timed_out else "transport",
            ) from exc

        if response.status_code == 200:
            return response

        with response:
            try:
                body = response.read().decode("utf-8", errors="replace")
            except TransportError:
                body = ""
        raise self._status_error(response.status_code, body)

    def _require_api_key(self) -> None:
        """Require API key presence before issuing OpenAI requests."""

        if not self.api_key:
            raise OpenAIProviderError(
                "Missing OpenAI API key. Set `OPENAI_API_KEY`, run `ttscli configure`, "
                "or pass `--api-key`.",
                failure_kind="invalid_api_key",
            )

    @classmethod
    def _status_error(cls, status_code: int, body: str) -> OpenAIProviderError:
        """Convert a non-success response into a provider error."""

        return OpenAIProviderError(
            "OpenAI API request failed with status code: "
            f"{status_code}, response body: {cls._redact_sensitive_tokens(body)}",
            failure_kind=cls._classify_http_failure(status_code, body),
            status_code=status_code,
            body=body,
        )

    @staticmethod
    def _redact_sensitive_tokens(text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}\b", "[redacted-key]", text)
        return re.sub(
            r"(?i)bearer\s+[A-Za-z0-9._-]{12,}",
            "Bearer [redacted-token]",
            redacted,
        )

    @staticmethod
    def _provider_code(body: str) -> str:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return ""
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            code = payload["error"].get("code")
            if isinstance(code, str):
                return code.strip().lower()
        return ""

    @classmethod
    def _classify_http_failure(cls, status_code: int, body: str) -> str:
        """Classify OpenAI HTTP errors into diagnostic kinds."""

        body_lower = body.lower()
        provider_code = cls._provider_code(body)
        if status_code == 401 or provider_code == "invalid_api_key":
            return "invalid_api_key"
        if provider_code == "insufficient_quota" or (status_code == 429 and "quota" in body_lower):
            return "insufficient_quota"
        if status_code == 429:
            return "rate_limited"
        if provider_code == "model_not_found":
            return "invalid_model"
        if status_code in {408, 504}:
            return "timeout"
        return "http_error"
