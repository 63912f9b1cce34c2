from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from speechcoach.analysis.schemas import EVALUATION_CRITERIA, EXPECTED_CRITERIA_COUNT
from speechcoach.core.llm.parts import AudioPart, PromptPart, TextPart

# MIME parameters such as `;codecs=opus` are accepted and dropped.
_DATA_URI_PATTERN = re.compile(r"data:([^;,]+)(?:;[^;,=]+=[^;,]*)*;base64,(.+)")


class InvalidDataURIError(ValueError):
    """Raised when a `data:` speech sample is not `data:<mime>;base64,<payload>`."""


@dataclass(frozen=True)
class DataURI:
    mime_type: str
    base64: str


def is_data_uri(speech_sample: str) -> bool:
    return speech_sample.startswith("data:")


def parse_data_uri(value: str) -> DataURI:
    """Split a base64 data URI into MIME type and payload, validating the payload."""

    match = _DATA_URI_PATTERN.fullmatch(value.strip())
    if match is None:
        raise InvalidDataURIError("Invalid audio data URI format.")

    mime_type, payload = match.group(1).strip(), match.group(2).strip()
    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataURIError("Invalid audio data URI format.") from exc
    return DataURI(mime_type=mime_type, base64=payload)


def _criteria_lines() -> list[str]:
    lines = []
    for category, names in EVALUATION_CRITERIA.items():
        lines.append(
            f"- **{category} Criteria**: {', '.join(names)}. "
            f"Assign the category '{category}' to these."
        )
    return lines


def build_system_prompt(*, has_perfect_answer: bool) -> str:
    """
    Build the system instruction.

    The preamble switches between exam-style comparison (reference answer given) and
    open coaching. The output-shape instructions are shared by both.
    """

    if has_perfect_answer:
        preamble = [
            "You are a professional exam evaluator. Your task is to evaluate the candidate's "
            f"answer compared to the perfect answer based on the following {EXPECTED_CRITERIA_COUNT} "
            "criteria. For each criterion, you must provide:",
            "- **Evaluation:** A brief assessment of the candidate's performance on that criterion.",
            "- **Comparison:** A detailed analysis of how the candidate's answer compares with the "
            "perfect answer for that criterion.",
            "- **Feedback:** Specific, actionable suggestions for improvement.",
        ]
    else:
        preamble = [
            "You are a professional speech coach. Your task is to analyze a speech sample and "
            "provide constructive feedback.",
        ]

    instructions = [
        "",
        "IMPORTANT: The speech sample may be provided as text OR as audio. If audio is "
        "provided, you MUST first transcribe the audio into text. Then, use that "
        "transcription for the analysis below. If the speech sample is already text, use it "
        "directly.",
        "",
        "Return your answer as a valid JSON object following the response schema exactly "
        "(do not include any extra text).",
        "",
        "Follow these instructions when generating the JSON:",
        f"- Evaluate the speech sample on ALL {EXPECTED_CRITERIA_COUNT} of the following criteria.",
        *_criteria_lines(),
        f"- For each of the {EXPECTED_CRITERIA_COUNT} criteria, provide a score from 0-10, an "
        "evaluation, and actionable feedback.",
    ]

    if has_perfect_answer:
        instructions.append(
            "- For each criterion, you MUST also provide a 'comparison' of the candidate's "
            "answer to the perfect answer."
        )

    instructions += [
        "- The totalScore is from 0 to 100, and should evaluate the speech sample and context "
        "as a whole.",
        "- The wordCount, fillerWordCount, speechRateWPM, averagePauseDurationMs, and "
        "pitchVariance should be calculated or estimated from the transcription.",
        "- The paceScore and clarityScore should be scores from 0-100 based on the analysis.",
        "- The pausePercentage should be the estimated percentage of total time the speaker "
        "was pausing.",
        "- **highlightedTranscription**: This is critical. You must meticulously segment the "
        "entire transcription. Create a segment for every single word or pause. A 'filler' "
        "type is ONLY for a single filler word (e.g., um, ah, like). A 'pause' type is for "
        "significant silences (e.g., '[PAUSE: 1.2s]'). All other words are 'default'. "
        "Concatenating all 'text' fields MUST reconstruct the full transcription with pause "
        "annotations. Do not leave this field empty. Be extremely thorough.",
        "- **overallAssessment**: A short paragraph summarizing strengths and the most "
        "important areas to improve.",
        "- **suggestedSpeech**: Provide a concise (1-3 sentences) rephrasing that demonstrates "
        "ideal delivery for the user's context. Keep it natural, specific, and immediately "
        "usable. Use neutral tone unless the mode implies otherwise.",
    ]

    return "\n".join(preamble + instructions) + "\n"


def build_context_text(*, mode: str, question: str | None, perfect_answer: str | None) -> str:
    lines = [f"Context: {mode}"]
    if question:
        lines.append(f"Question: {question}")
    if perfect_answer:
        lines.append(f"Perfect Answer: {perfect_answer}")
    return "\n".join(lines)


def build_prompt_parts(
    *,
    speech_sample: str,
    mode: str,
    question: str | None = None,
    perfect_answer: str | None = None,
) -> list[PromptPart]:
    """
    Return the user-message parts: context first, then the speech sample.

    A data URI sample becomes an inline audio part; anything else is sent as text.
    Raises InvalidDataURIError for a malformed `data:` sample.
    """

    parts: list[PromptPart] = [
        TextPart(
            text=build_context_text(mode=mode, question=question, perfect_answer=perfect_answer)
        )
    ]

    if is_data_uri(speech_sample):
        audio = parse_data_uri(speech_sample)
        parts.append(AudioPart(mime_type=audio.mime_type, data=audio.base64))
    else:
        parts.append(TextPart(text=f"Speech Sample (Candidate's Answer): {speech_sample}"))

    return parts
