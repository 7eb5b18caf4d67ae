"""Text-to-speech provider components.

This package contains the speech selector catalog, request building, the
injectable HTTP transport, request pacing, and the OpenAI speech client.
"""

from .openai_client import OpenAIProviderError, OpenAISpeechClient
from .rate_limiter import RateLimiter
from .request_builder import build_request, encode_request
from .transport import RequestsTransport, Transport, TransportError, TransportResponse
from .voices import SpeechSettings

__all__ = [
    "OpenAIProviderError",
    "OpenAISpeechClient",
    "RateLimiter",
    "RequestsTransport",
    "SpeechSettings",
    "Transport",
    "TransportError",
    "TransportResponse",
    "build_request",
    "encode_request",
]
