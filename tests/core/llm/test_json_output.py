from __future__ import annotations

import pytest

from speechcoach.core.llm.errors import LLMOutputError
from speechcoach.core.llm.json_output import parse_json_object


def test_parses_clean_json() -> None:
    assert parse_json_object('{"a": 1}') == {"a": 1}


def test_extracts_outermost_object_from_surrounding_text() -> None:
    text = 'Sure! Here is the evaluation:\n{"a": {"b": [1, 2]}}\nLet me know.'
    assert parse_json_object(text) == {"a": {"b": [1, 2]}}


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("", "No response text from model"),
        ("   \n", "No response text from model"),
        ("no json here", "Model did not return valid JSON format"),
        ("prefix {broken: json} suffix", "Failed to parse JSON response from model"),
        ("[1, 2, 3]", "Model JSON output must be an object"),
    ],
)
def test_rejects_unusable_output(text: str, message: str) -> None:
    with pytest.raises(LLMOutputError) as excinfo:
        parse_json_object(text)
    assert excinfo.value.message == message
