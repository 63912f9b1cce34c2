from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from speechcoach.analysis.prompt import (
    InvalidDataURIError,
    build_prompt_parts,
    build_system_prompt,
)
from speechcoach.analysis.schemas import (
    EVALUATION_CRITERIA,
    EXPECTED_CRITERIA_COUNT,
    AnalysisRequest,
    _LLMAnalysisJSON,
    _LLMCriterionJSON,
    analysis_response_schema,
)
from speechcoach.core.llm.deps import LLMClient
from speechcoach.domain.exceptions import AnalysisRequestError, ModelOutputError

logger = logging.getLogger("speechcoach.analysis")

MISSING_FIELDS_MESSAGE = "Missing required fields: speechSample and mode are required."


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


_CATEGORY_BY_NAME: dict[str, str] = {
    name: category for category, names in EVALUATION_CRITERIA.items() for name in names
}


def _criteria_problems(criteria: list[Any], *, has_perfect_answer: bool) -> list[str]:
    """List every way the criteria deviate from the 15 fixed entries, one per problem."""

    problems: list[str] = []
    if len(criteria) != EXPECTED_CRITERIA_COUNT:
        problems.append(
            f"expected {EXPECTED_CRITERIA_COUNT} evaluation criteria, got {len(criteria)}"
        )

    seen: set[str] = set()
    for idx, item in enumerate(criteria):
        try:
            criterion = _LLMCriterionJSON.model_validate(item)
        except ValidationError:
            problems.append(f"evaluationCriteria[{idx}] has a missing or unknown category or name")
            continue

        if _CATEGORY_BY_NAME[criterion.criteria] != criterion.category:
            problems.append(
                f"evaluationCriteria[{idx}] lists {criterion.criteria} under {criterion.category}"
            )
        if criterion.criteria in seen:
            problems.append(f"evaluationCriteria[{idx}] repeats {criterion.criteria}")
        seen.add(criterion.criteria)

        comparison = criterion.comparison
        if has_perfect_answer and not (isinstance(comparison, str) and comparison.strip()):
            problems.append(f"evaluationCriteria[{idx}] is missing a comparison")
    return problems


class SpeechAnalysisService:
    """Builds the prompt, makes a single model call and checks the reply's shape."""

    def __init__(self, *, llm_client: LLMClient, strict_criteria_validation: bool = True):
        self._llm = llm_client
        self._strict = strict_criteria_validation

    async def analyze(self, request: AnalysisRequest) -> dict[str, Any]:
        if _is_blank(request.speech_sample) or _is_blank(request.mode):
            raise AnalysisRequestError(MISSING_FIELDS_MESSAGE, status_code=400)

        # Narrowed by the blank check above.
        speech_sample = str(request.speech_sample)
        mode = str(request.mode)
        perfect_answer = request.perfect_answer or None

        try:
            parts = build_prompt_parts(
                speech_sample=speech_sample,
                mode=mode,
                question=request.question or None,
                perfect_answer=perfect_answer,
            )
        except InvalidDataURIError as exc:
            raise AnalysisRequestError(str(exc), status_code=400) from exc

        has_perfect_answer = perfect_answer is not None
        llm_json = await self._llm.generate_json(
            system_prompt=build_system_prompt(has_perfect_answer=has_perfect_answer),
            parts=parts,
            response_schema=analysis_response_schema(with_comparison=has_perfect_answer),
        )

        self.validate_output(llm_json, has_perfect_answer=has_perfect_answer)
        return llm_json

    def validate_output(
        self, llm_json: dict[str, Any], *, has_perfect_answer: bool = False
    ) -> None:
        """
        Enforce the output contract on a parsed model reply.

        The structural minimum (metadata, evaluationCriteria list, totalScore) is always
        required. Criteria count, names, categories and (with a reference answer)
        comparisons are enforced only in strict mode; otherwise they are logged and
        the payload passes through.
        """

        try:
            parsed = _LLMAnalysisJSON.model_validate(llm_json)
        except ValidationError as exc:
            raise ModelOutputError(
                "Invalid response structure from model",
                details="; ".join(
                    ".".join(str(p) for p in err["loc"]) or "root" for err in exc.errors()
                ),
            ) from None

        problems = _criteria_problems(
            parsed.evaluationCriteria, has_perfect_answer=has_perfect_answer
        )
        if not problems:
            return

        if self._strict:
            raise ModelOutputError("Invalid model output", details="; ".join(problems))

        logger.warning(
            "Model output failed criteria checks; passing through",
            extra={"criteria_count": len(parsed.evaluationCriteria)},
        )
