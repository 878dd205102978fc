from __future__ import annotations

import pytest

from intelligence.json_extract import extract_json_object, extract_required, find_json_object_span, missing_fields
from utils.exceptions import ModelOutputParseError


def test_extracts_first_object_from_prose() -> None:
    content = 'Sure! Here is the analysis:\n{"confidence": 0.9, "nested": {"a": [1, 2]}}\nHope this helps {not json}'
    assert extract_json_object(content) == {"confidence": 0.9, "nested": {"a": [1, 2]}}


def test_braces_inside_strings_are_ignored() -> None:
    content = 'prefix {"text": "use } and { freely", "escaped": "say \\"hi\\" }"} suffix'
    span = find_json_object_span(content)
    assert span is not None
    assert content[span[1]] == "}"
    assert extract_json_object(content)["text"] == "use } and { freely"


def test_unbalanced_or_missing_object_raises() -> None:
    with pytest.raises(ModelOutputParseError):
        extract_json_object("no json here")
    with pytest.raises(ModelOutputParseError):
        extract_json_object('{"open": true')
    with pytest.raises(ModelOutputParseError):
        extract_json_object("{'single': 'quotes'}")


def test_missing_fields_supports_dotted_paths() -> None:
    payload = {"visualPrompt": "x", "narrationScript": "  ", "seo": {"title": None}}
    assert missing_fields(payload, ["visualPrompt", "narrationScript", "seo.title", "seo.tags"]) == [
        "narrationScript",
        "seo.title",
        "seo.tags",
    ]


def test_extract_required_reports_missing_fields() -> None:
    with pytest.raises(ModelOutputParseError) as exc_info:
        extract_required('{"confidence": 0.5}', ["confidence", "newsContext"])
    assert exc_info.value.missing_fields == ["newsContext"]
