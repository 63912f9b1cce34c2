"""Test helpers for the analysis slice."""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any

from speechcoach.analysis.schemas import EVALUATION_CRITERIA
from speechcoach.core.llm.parts import PromptPart


def make_analysis_result(*, with_comparison: bool = False) -> dict[str, Any]:
    """Return a well-formed model reply with all 15 criteria."""

    criteria = []
    for category, names in EVALUATION_CRITERIA.items():
        for name in names:
            item: dict[str, Any] = {
                "category": category,
                "criteria": name,
                "score": 7,
                "evaluation": f"{name} was adequate.",
                "feedback": f"Work on {name.lower()}.",
            }
            if with_comparison:
                item["comparison"] = f"{name} is weaker than in the perfect answer."
            criteria.append(item)

    return {
        "metadata": {
            "wordCount": 3,
            "fillerWordCount": 1,
            "speechRateWPM": 120,
            "averagePauseDurationMs": 400,
            "pausePercentage": 10,
            "pitchVariance": 12.5,
            "paceScore": 70,
            "clarityScore": 80,
        },
        "highlightedTranscription": [
            {"text": "Hello ", "type": "default"},
            {"text": "um ", "type": "filler"},
            {"text": "there", "type": "default"},
        ],
        "evaluationCriteria": criteria,
        "totalScore": 72,
        "overallAssessment": "Clear but hesitant.",
        "suggestedSpeech": "Hello there.",
    }


class FakeLLMClient:
    """Records every call and returns a canned reply (deep-copied per call)."""

    provider = "gemini"

    def __init__(self, reply: dict[str, Any] | None = None, *, error: Exception | None = None):
        self._reply = reply if reply is not None else make_analysis_result()
        self._error = error
        self.calls: list[dict[str, Any]] = []

    async def generate_json(
        self,
        *,
        system_prompt: str,
        parts: Sequence[PromptPart],
        response_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            {"system_prompt": system_prompt, "parts": list(parts), "response_schema": response_schema}
        )
        if self._error is not None:
            raise self._error
        return copy.deepcopy(self._reply)
