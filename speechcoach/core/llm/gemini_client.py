from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from speechcoach.core.llm.errors import LLMOutputError, LLMUpstreamError
from speechcoach.core.llm.json_output import parse_json_object
from speechcoach.core.llm.parts import AudioPart, PromptPart


@dataclass(frozen=True)
class GeminiConfig:
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float
    temperature: float = 0.3
    top_k: int = 40
    top_p: float = 0.9
    max_output_tokens: int = 8192


def _to_gemini_part(part: PromptPart) -> dict[str, Any]:
    if isinstance(part, AudioPart):
        return {"inlineData": {"mimeType": part.mime_type, "data": part.data}}
    return {"text": part.text}


class GeminiClient:
    """
    Google Gemini `generateContent` client returning a parsed JSON object.

    - JSON output is requested via `responseMimeType`, and constrained by
      `responseSchema` when the caller provides one.
    - Audio is sent inline (base64), never uploaded separately.
    - No logging in this module; the caller decides what is safe to log.
    """

    provider = "gemini"

    def __init__(self, *, config: GeminiConfig, transport: httpx.AsyncBaseTransport | None = None):
        self._config = config
        self._transport = transport

    def build_payload(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        generation_config: dict[str, Any] = {
            "temperature": self._config.temperature,
            "topK": self._config.top_k,
            "topP": self._config.top_p,
            "maxOutputTokens": self._config.max_output_tokens,
            "responseMimeType": "application/json",
        }
        if response_schema is not None:
            generation_config["responseSchema"] = response_schema

        return {
            "contents": [{"role": "user", "parts": [_to_gemini_part(p) for p in parts]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": generation_config,
        }

    async def generate_json(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._config.base_url.rstrip('/')}/models/{self._config.model}:generateContent"
        payload = self.build_payload(
            system_prompt=system_prompt, parts=parts, response_schema=response_schema
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.post(
                    url,
                    params={"key": self._config.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.TimeoutException as exc:
            raise LLMUpstreamError("LLM request timed out") from exc
        except httpx.HTTPError as exc:
            raise LLMUpstreamError("LLM request failed") from exc

        if not resp.is_success:
            raise LLMUpstreamError(
                f"Gemini API error: {resp.status_code}",
                status_code=resp.status_code,
                details=resp.text,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise LLMOutputError("Gemini API returned a non-JSON body") from exc

        return parse_json_object(_candidate_text(data))


def _candidate_text(data: Any) -> str:
    """Return `candidates[0].content.parts[0].text`, or "" when any level is missing."""

    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""
