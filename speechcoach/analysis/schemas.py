from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CriterionCategory = Literal["Delivery", "Language", "Content"]
SegmentType = Literal["default", "filler", "pause"]

EVALUATION_CRITERIA: dict[str, tuple[str, ...]] = {
    "Delivery": ("Fluency", "Pacing", "Clarity", "Confidence", "Emotional Tone"),
    "Language": ("Grammar", "Vocabulary", "Word Choice", "Conciseness", "Filler Words"),
    "Content": ("Relevance", "Organization", "Accuracy", "Depth", "Persuasiveness"),
}
CRITERIA_CATEGORIES: tuple[str, ...] = tuple(EVALUATION_CRITERIA)
CRITERIA_NAMES: tuple[str, ...] = tuple(
    name for names in EVALUATION_CRITERIA.values() for name in names
)
EXPECTED_CRITERIA_COUNT = len(CRITERIA_NAMES)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisRequest(_CamelModel):
    """
    Inbound analysis payload.

    Presence of `speechSample` and `mode` is checked by the service rather than the
    schema so the client gets a single, explicit error message.
    """

    speech_sample: str | None = Field(
        default=None,
        description="Plain text, or an audio data URI `data:<mime>;base64,<data>`.",
        examples=["Hello um there, I'm applying for the analyst role."],
    )
    mode: str | None = Field(
        default=None,
        description="Context label for the speech (e.g. interview, presentation).",
        examples=["interview"],
    )
    question: str | None = Field(default=None, description="Question the speaker answered.")
    perfect_answer: str | None = Field(
        default=None,
        description="Reference answer. When present, every criterion includes a comparison.",
    )


class AnalysisMetadata(_CamelModel):
    word_count: int = Field(ge=0)
    filler_word_count: int = Field(ge=0)
    speech_rate_wpm: float = Field(alias="speechRateWPM", ge=0)
    average_pause_duration_ms: float = Field(ge=0)
    pause_percentage: float = Field(ge=0, le=100)
    pitch_variance: float = Field(ge=0)
    pace_score: float = Field(ge=0, le=100)
    clarity_score: float = Field(ge=0, le=100)


class TranscriptionSegment(_CamelModel):
    text: str
    type: SegmentType


class EvaluationCriterion(_CamelModel):
    category: CriterionCategory
    criteria: str
    score: float = Field(ge=0, le=10)
    evaluation: str
    comparison: str | None = None
    feedback: str


class AnalysisResult(_CamelModel):
    """Documented response shape. Responses are returned as the model produced them."""

    metadata: AnalysisMetadata
    highlighted_transcription: list[TranscriptionSegment]
    evaluation_criteria: list[EvaluationCriterion] = Field(
        min_length=EXPECTED_CRITERIA_COUNT, max_length=EXPECTED_CRITERIA_COUNT
    )
    total_score: float = Field(ge=0, le=100)
    overall_assessment: str
    suggested_speech: str | None = None


class _LLMCriterionJSON(BaseModel):
    """Per-criterion checks applied under strict validation."""

    model_config = ConfigDict(extra="allow")

    category: CriterionCategory
    criteria: Literal[CRITERIA_NAMES]
    comparison: Any = None


class _LLMAnalysisJSON(BaseModel):
    """
    Minimal contract every model reply must satisfy.

    Extra fields are allowed; the caller returns the original dict, not this model.
    """

    # Strict: a string or boolean totalScore would reach the client unchanged.
    model_config = ConfigDict(extra="allow", strict=True)

    metadata: dict[str, Any]
    evaluationCriteria: list[Any]
    totalScore: float


def _criterion_schema(*, with_comparison: bool) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "category": {"type": "STRING", "enum": list(CRITERIA_CATEGORIES)},
        "criteria": {"type": "STRING", "enum": list(CRITERIA_NAMES)},
        "score": {"type": "NUMBER"},
        "evaluation": {"type": "STRING"},
        "feedback": {"type": "STRING"},
    }
    required = ["category", "criteria", "score", "evaluation", "feedback"]
    if with_comparison:
        properties["comparison"] = {"type": "STRING"}
        required.insert(4, "comparison")
    ordering = ("category", "criteria", "score", "evaluation", "comparison", "feedback")
    return {
        "type": "OBJECT",
        "properties": properties,
        "required": required,
        "propertyOrdering": [name for name in ordering if name in properties],
    }


def analysis_response_schema(*, with_comparison: bool) -> dict[str, Any]:
    """Gemini `responseSchema` (OpenAPI subset) describing AnalysisResult."""

    metadata_fields = (
        "wordCount",
        "fillerWordCount",
        "speechRateWPM",
        "averagePauseDurationMs",
        "pausePercentage",
        "pitchVariance",
        "paceScore",
        "clarityScore",
    )
    return {
        "type": "OBJECT",
        "properties": {
            "metadata": {
                "type": "OBJECT",
                "properties": {name: {"type": "NUMBER"} for name in metadata_fields},
                "required": list(metadata_fields),
            },
            "highlightedTranscription": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "text": {"type": "STRING"},
                        "type": {"type": "STRING", "enum": ["default", "filler", "pause"]},
                    },
                    "required": ["text", "type"],
                },
            },
            "evaluationCriteria": {
                "type": "ARRAY",
                "items": _criterion_schema(with_comparison=with_comparison),
                "minItems": EXPECTED_CRITERIA_COUNT,
                "maxItems": EXPECTED_CRITERIA_COUNT,
            },
            "totalScore": {"type": "NUMBER"},
            "overallAssessment": {"type": "STRING"},
            "suggestedSpeech": {"type": "STRING"},
        },
        "required": [
            "metadata",
            "highlightedTranscription",
            "evaluationCriteria",
            "totalScore",
            "overallAssessment",
        ],
        "propertyOrdering": [
            "metadata",
            "highlightedTranscription",
            "evaluationCriteria",
            "totalScore",
            "overallAssessment",
            "suggestedSpeech",
        ],
    }
