"""Provider-neutral user-message parts.

Clients translate these into their own wire format (Gemini `parts`, OpenAI-style
`content` arrays).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class AudioPart:
    mime_type: str
    data: str  # base64, exactly as received in the data URI


PromptPart = TextPart | AudioPart
