from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from speechcoach.core.llm.errors import LLMOutputError, LLMUpstreamError
from speechcoach.core.llm.gemini_client import GeminiClient, GeminiConfig
from speechcoach.core.llm.parts import AudioPart, TextPart

_CONFIG = GeminiConfig(
    api_key="k-123",
    base_url="https://gemini.test/v1beta/",
    model="gemini-1.5-flash",
    timeout_seconds=5.0,
)
_PARTS = [TextPart(text="Context: interview"), AudioPart(mime_type="audio/wav", data="UklGRg==")]


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _run(handler, **kwargs) -> dict:
    client = GeminiClient(config=_CONFIG, transport=httpx.MockTransport(handler))
    return asyncio.run(
        client.generate_json(system_prompt="You are a coach.", parts=_PARTS, **kwargs)
    )


def test_generate_json_sends_inline_audio_and_schema() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_gemini_body('{"totalScore": 80}'))

    schema = {"type": "OBJECT", "properties": {"totalScore": {"type": "NUMBER"}}}
    result = _run(handler, response_schema=schema)

    assert result == {"totalScore": 80}
    assert seen["url"].path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert seen["url"].params["key"] == "k-123"

    body = seen["body"]
    assert body["systemInstruction"] == {"parts": [{"text": "You are a coach."}]}
    assert body["contents"][0]["parts"] == [
        {"text": "Context: interview"},
        {"inlineData": {"mimeType": "audio/wav", "data": "UklGRg=="}},
    ]
    config = body["generationConfig"]
    assert config["temperature"] == 0.3
    assert config["topK"] == 40
    assert config["topP"] == 0.9
    assert config["maxOutputTokens"] == 8192
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"] == schema


def test_generate_json_omits_schema_when_not_given() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_gemini_body("{}"))

    _run(handler)
    assert "responseSchema" not in seen["body"]["generationConfig"]


def test_generate_json_non_200_raises_with_upstream_status_and_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="API key not valid")

    with pytest.raises(LLMUpstreamError) as excinfo:
        _run(handler)

    assert excinfo.value.status_code == 403
    assert excinfo.value.details == "API key not valid"
    assert excinfo.value.message == "Gemini API error: 403"


def test_generate_json_transport_error_raises_without_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LLMUpstreamError) as excinfo:
        _run(handler)

    assert excinfo.value.status_code is None


def test_generate_json_empty_candidates_raises_output_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    with pytest.raises(LLMOutputError, match="No response text"):
        _run(handler)


def test_generate_json_extracts_object_from_fenced_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_gemini_body('```json\n{"totalScore": 55}\n```'))

    assert _run(handler) == {"totalScore": 55}


def test_generate_json_accepts_any_2xx() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=_gemini_body('{"totalScore": 61}'))

    assert _run(handler) == {"totalScore": 61}


def test_generate_json_empty_2xx_raises_output_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    with pytest.raises(LLMOutputError):
        _run(handler)
