from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from speechcoach.core.llm.errors import LLMOutputError, LLMUpstreamError
from speechcoach.core.llm.json_output import parse_json_object
from speechcoach.core.llm.parts import AudioPart, PromptPart

# OpenAI-style `input_audio.format` values keyed by MIME subtype.
_AUDIO_FORMATS = {
    "wav": "wav",
    "x-wav": "wav",
    "wave": "wav",
    "mpeg": "mp3",
    "mp3": "mp3",
    "webm": "webm",
    "ogg": "ogg",
    "flac": "flac",
    "mp4": "m4a",
    "m4a": "m4a",
    "x-m4a": "m4a",
    "aac": "aac",
}


@dataclass(frozen=True)
class OpenRouterConfig:
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float
    temperature: float = 0.3
    max_tokens: int = 8192


def audio_format_for(mime_type: str) -> str:
    subtype = mime_type.split("/", 1)[-1].split(";", 1)[0].strip().lower()
    return _AUDIO_FORMATS.get(subtype, subtype)


def _to_content_item(part: PromptPart) -> dict[str, Any]:
    if isinstance(part, AudioPart):
        return {
            "type": "input_audio",
            "input_audio": {"data": part.data, "format": audio_format_for(part.mime_type)},
        }
    return {"type": "text", "text": part.text}


class OpenRouterClient:
    """
    OpenAI-compatible chat-completions client (via OpenRouter) returning a parsed JSON object.

    OpenRouter does not enforce a response schema for every routed model, so JSON
    mode is requested and the text is parsed with the bracket-extraction fallback.
    """

    provider = "openrouter"

    def __init__(
        self, *, config: OpenRouterConfig, transport: httpx.AsyncBaseTransport | None = None
    ):
        self._config = config
        self._transport = transport

    def build_payload(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        # response_schema is Gemini-dialect; the prompt already describes the shape.
        return {
            "model": self._config.model,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": [_to_content_item(p) for p in parts]},
            ],
            "response_format": {"type": "json_object"},
        }

    async def generate_json(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._config.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(
            system_prompt=system_prompt, parts=parts, response_schema=response_schema
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            raise LLMUpstreamError("LLM request timed out") from exc
        except httpx.HTTPError as exc:
            raise LLMUpstreamError("LLM request failed") from exc

        if not resp.is_success:
            raise LLMUpstreamError(
                f"OpenRouter API error: {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
            )

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except ValueError as exc:
            raise LLMOutputError("OpenRouter API returned a non-JSON body") from exc
        except (KeyError, IndexError, TypeError):
            content = ""

        return parse_json_object(content if isinstance(content, str) else "")
