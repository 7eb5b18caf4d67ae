"""Mapping from chunks to speech request payloads."""

from __future__ import annotations

import json

from ..models.datatypes import Chunk, SynthesisRequest
from .voices import SpeechSettings


def build_request(chunk: Chunk, settings: SpeechSettings) -> SynthesisRequest:
    """Build the provider request for one chunk, framing included."""

    return SynthesisRequest(
        model=settings.model,
        input=chunk.payload,
        voice=settings.voice,
        response_format=settings.response_format,
        speed=settings.speed,
    )


def encode_request(request: SynthesisRequest) -> bytes:
    """Serialize a request to the UTF-8 JSON body sent on the wire."""

    return json.dumps(request.as_payload(), ensure_ascii=False).encode("utf-8")
