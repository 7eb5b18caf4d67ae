"""Unit tests for the speech client, request builder, and requests transport."""

from __future__ import annotations

import pytest
import requests

from ttscli.models.datatypes import Chunk, SynthesisRequest
from ttscli.tts.openai_client import SPEECH_ENDPOINT, OpenAIProviderError, OpenAISpeechClient
from ttscli.tts.request_builder import build_request, encode_request
from ttscli.tts.transport import RequestsTransport, TransportError
from ttscli.tts.voices import SpeechSettings

from tests.doubles import ScriptedTransport, network_failure


def _request() -> SynthesisRequest:
    return SynthesisRequest(
        model="tts-1",
        input="Test input text",
        voice="alloy",
        response_format="mp3",
        speed=1.0,
    )


def test_build_request_uses_framed_payload_and_selectors() -> None:
    """Request input should be the chunk payload with all selectors copied over."""

    settings = SpeechSettings(voice="onyx", model="tts-1", response_format="wav", speed=1.5)
    request = build_request(Chunk(index=0, text="Hello", framed=True), settings)

    assert request.as_payload() == {
        "model": "tts-1",
        "input": "Begin Text\nHello\nEnd Text",
        "voice": "onyx",
        "response_format": "wav",
        "speed": 1.5,
    }


def test_encode_request_keeps_unicode_text() -> None:
    """Encoded body should be UTF-8 JSON without ASCII escaping."""

    request = SynthesisRequest("tts-1", "Příliš žluťoučký", "nova", "mp3", 1.0)

    assert "Příliš žluťoučký".encode("utf-8") in encode_request(request)


def test_speech_client_posts_json_with_bearer_token() -> None:
    """Client should POST to the speech endpoint with auth and JSON headers."""

    transport = ScriptedTransport(script=[(200, b"Mock audio data")])
    client = OpenAISpeechClient(api_key=" test-api-key ", transport=transport, timeout_seconds=12)

    with client.open_speech_stream(_request()) as response:
        body = response.read()

    sent = transport.sent[0]
    assert body == b"Mock audio data"
    assert sent.method == "POST"
    assert sent.url == SPEECH_ENDPOINT
    assert sent.headers["Authorization"] == "Bearer test-api-key"
    assert sent.headers["Content-Type"] == "application/json"
    assert sent.timeout == 12
    assert sent.json() == _request().as_payload()


def test_speech_client_surfaces_status_and_body_verbatim() -> None:
    """Non-200 responses should raise with the status code and body preserved."""

    transport = ScriptedTransport(script=[(400, b"Bad request")])
    client = OpenAISpeechClient(api_key="key", transport=transport)

    with pytest.raises(OpenAIProviderError) as exc_info:
        client.open_speech_stream(_request())

    assert str(exc_info.value) == (
        "OpenAI API request failed with status code: 400, response body: Bad request"
    )
    assert exc_info.value.status_code == 400
    assert exc_info.value.body == "Bad request"
    assert exc_info.value.failure_kind == "http_error"
    assert transport.responses[0].closed is True


@pytest.mark.parametrize(
    ("status_code", "body", "failure_kind"),
    [
        (401, b'{"error":{"message":"Incorrect API key"}}', "invalid_api_key"),
        (429, b'{"error":{"code":"insufficient_quota","message":"quota"}}', "insufficient_quota"),
        (429, b'{"error":{"message":"slow down"}}', "rate_limited"),
        (404, b'{"error":{"code":"model_not_found"}}', "invalid_model"),
        (504, b"gateway timeout", "timeout"),
    ],
)
def test_speech_client_classifies_http_failures(
    status_code: int, body: bytes, failure_kind: str
) -> None:
    """HTTP failures should map onto diagnostic failure kinds."""

    client = OpenAISpeechClient(
        api_key="key", transport=ScriptedTransport(script=[(status_code, body)])
    )

    with pytest.raises(OpenAIProviderError) as exc_info:
        client.open_speech_stream(_request())

    assert exc_info.value.failure_kind == failure_kind


def test_speech_client_redacts_keys_in_message_but_not_body() -> None:
    """Key-like tokens should be hidden from the message while the body stays verbatim."""

    raw = "Incorrect API key provided: sk-abcdefghijklmnop"
    client = OpenAISpeechClient(
        api_key="key", transport=ScriptedTransport(script=[(401, raw.encode())])
    )

    with pytest.raises(OpenAIProviderError) as exc_info:
        client.open_speech_stream(_request())

    assert "sk-abcdefghijklmnop" not in str(exc_info.value)
    assert "[redacted-key]" in str(exc_info.value)
    assert exc_info.value.body == raw


def test_speech_client_maps_transport_failures() -> None:
    """Network failures should surface as provider errors naming the cause."""

    client = OpenAISpeechClient(
        api_key="key", transport=ScriptedTransport(script=[network_failure()])
    )

    with pytest.raises(OpenAIProviderError) as exc_info:
        client.open_speech_stream(_request())

    assert str(exc_info.value) == "unable to send request to OpenAI API: network error"
    assert exc_info.value.failure_kind == "transport"


def test_speech_client_marks_timeouts() -> None:
    """Timed-out transport calls should be classified as timeouts."""

    client = OpenAISpeechClient(
        api_key="key",
        transport=ScriptedTransport(script=[network_failure("read timed out", timed_out=True)]),
    )

    with pytest.raises(OpenAIProviderError) as exc_info:
        client.open_speech_stream(_request())

    assert exc_info.value.failure_kind == "timeout"


def test_speech_client_requires_api_key_before_sending() -> None:
    """Missing keys should fail without any transport call."""

    transport = ScriptedTransport()
    client = OpenAISpeechClient(api_key="  ", transport=transport)

    with pytest.raises(OpenAIProviderError, match="Missing OpenAI API key"):
        client.open_speech_stream(_request())

    assert transport.sent == []


class _FakeRequestsResponse:
    """Minimal streamed `requests.Response` stand-in."""

    def __init__(self, status_code: int, blocks: list[bytes]) -> None:
        self.status_code = status_code
        self._blocks = blocks
        self.closed = False

    def iter_content(self, chunk_size: int) -> object:
        _ = chunk_size
        return iter(self._blocks)

    def close(self) -> None:
        self.closed = True


class _FakeSession:
    """Session stand-in that records the last request call."""

    def __init__(self, outcome: object) -> None:
        self.outcome = outcome
        self.calls: list[dict[str, object]] = []

    def request(self, method: str, url: str, **kwargs: object) -> object:
        self.calls.append({"method": method, "url": url, **kwargs})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_requests_transport_streams_body_with_timeout() -> None:
    """Requests transport should enable streaming and pass the timeout through."""

    session = _FakeSession(_FakeRequestsResponse(200, [b"ab", b"", b"cd"]))
    transport = RequestsTransport(session=session)  # type: ignore[arg-type]

    with transport.send("POST", "https://example.test", headers={"A": "b"}, body=b"{}") as response:
        assert response.status_code == 200
        assert list(response.iter_bytes()) == [b"ab", b"cd"]

    call = session.calls[0]
    assert call["stream"] is True
    assert call["timeout"] == 90.0
    assert call["data"] == b"{}"
    assert session.outcome.closed is True


def test_requests_transport_maps_timeouts() -> None:
    """`requests.Timeout` should become a timed-out transport error."""

    transport = RequestsTransport(session=_FakeSession(requests.Timeout("timed out")))  # type: ignore[arg-type]

    with pytest.raises(TransportError) as exc_info:
        transport.send("POST", "https://example.test", headers={}, body=b"")

    assert exc_info.value.timed_out is True


def test_requests_transport_maps_connection_errors() -> None:
    """Connection failures should become plain transport errors."""

    transport = RequestsTransport(
        session=_FakeSession(requests.ConnectionError("connection refused"))  # type: ignore[arg-type]
    )

    with pytest.raises(TransportError, match="connection refused") as exc_info:
        transport.send("POST", "https://example.test", headers={}, body=b"")

    assert exc_info.value.timed_out is False
