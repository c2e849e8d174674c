"""
Unit tests for classification response parsing.

Tests verify:
- Only the first balanced JSON object is used
- Braces inside strings do not affect nesting
- Tool-call arguments are preferred over message content
- Invalid or incomplete payloads surface as ParseError
"""
import json
import pytest
from unittest.mock import MagicMock

from core.errors import ParseError
from core.llm.response_parser import (
    extract_first_json_object,
    extract_tool_arguments,
    parse_candidate_analysis,
)
from core.llm.schema_models import ANALYZE_CANDIDATE_TOOL_NAME


def _payload(**overrides):
    data = {
        "skills_score": 80,
        "experience_score": 70,
        "education_score": 60,
        "overall_score": 72,
        "skills": [{"name": "Python", "proficiency": "Advanced"}],
        "recommendations": "Add metrics to achievements.",
        "summary": "Solid backend profile.",
        "experience_details": "Five years at two startups.",
        "education_details": "BSc Physics.",
    }
    data.update(overrides)
    return data


def _response(tool_arguments=None, content=None, tool_name=ANALYZE_CANDIDATE_TOOL_NAME):
    message = MagicMock()
    message.content = content
    if tool_arguments is None:
        message.tool_calls = None
    else:
        tool_call = MagicMock()
        tool_call.function.name = tool_name
        tool_call.function.arguments = tool_arguments
        message.tool_calls = [tool_call]
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


class TestExtractFirstJsonObject:

    def test_concatenated_objects_yield_the_first(self):
        text = '{"a":1}{"b":2}'

        assert extract_first_json_object(text) == '{"a":1}'

    def test_surrounding_prose_is_ignored(self):
        text = 'Here is the analysis: {"a": {"b": 2}} hope this helps {"c": 3}'

        assert json.loads(extract_first_json_object(text)) == {"a": {"b": 2}}

    def test_braces_inside_strings_do_not_count(self):
        text = '{"summary": "uses {curly} braces and \\"quotes}\\"", "n": 1} trailing'

        assert json.loads(extract_first_json_object(text))["n"] == 1

    @pytest.mark.parametrize("text", ["", None, "no json here"])
    def test_missing_object_raises(self, text):
        with pytest.raises(ParseError):
            extract_first_json_object(text)

    def test_unterminated_object_raises(self):
        with pytest.raises(ParseError):
            extract_first_json_object('{"a": {"b": 1}')


class TestExtractToolArguments:

    def test_tool_call_arguments_are_used(self):
        response = _response(tool_arguments='{"x": 1}', content="ignored")

        assert extract_tool_arguments(response, ANALYZE_CANDIDATE_TOOL_NAME) == '{"x": 1}'

    def test_falls_back_to_content(self):
        response = _response(content='{"x": 2}')

        assert extract_tool_arguments(response, ANALYZE_CANDIDATE_TOOL_NAME) == '{"x": 2}'

    def test_other_tool_and_no_content_raises(self):
        response = _response(tool_arguments='{"x": 1}', tool_name="something_else")

        with pytest.raises(ParseError):
            extract_tool_arguments(response, ANALYZE_CANDIDATE_TOOL_NAME)

    def test_no_choices_raises(self):
        response = MagicMock()
        response.choices = []

        with pytest.raises(ParseError):
            extract_tool_arguments(response, ANALYZE_CANDIDATE_TOOL_NAME)


class TestParseCandidateAnalysis:

    def test_valid_payload(self):
        analysis = parse_candidate_analysis(json.dumps(_payload()))

        assert analysis.overall_score == 72
        assert analysis.skills[0].name == "Python"
        assert analysis.skills[0].proficiency == "advanced"

    def test_first_of_two_concatenated_payloads_wins(self):
        raw = json.dumps(_payload(overall_score=90)) + json.dumps(_payload(overall_score=10))

        assert parse_candidate_analysis(raw).overall_score == 90

    def test_unknown_proficiency_raises(self):
        raw = json.dumps(_payload(skills=[{"name": " Go ", "proficiency": "guru"}]))

        with pytest.raises(ParseError) as exc_info:
            parse_candidate_analysis(raw)

        assert "skills.0.proficiency" in str(exc_info.value)

    def test_missing_proficiency_raises(self):
        raw = json.dumps(_payload(skills=[{"name": "Go"}]))

        with pytest.raises(ParseError):
            parse_candidate_analysis(raw)

    def test_skill_name_is_stripped(self):
        raw = json.dumps(_payload(skills=[{"name": " Go ", "proficiency": " Expert "}]))

        skill = parse_candidate_analysis(raw).skills[0]
        assert skill.name == "Go"
        assert skill.proficiency == "expert"

    @pytest.mark.parametrize("field,value", [
        ("overall_score", 101),
        ("skills_score", -1),
        ("experience_score", "lots"),
        ("education_score", "80"),
        ("overall_score", True),
        ("skills_score", 80.5),
    ])
    def test_invalid_scores_raise(self, field, value):
        with pytest.raises(ParseError) as exc_info:
            parse_candidate_analysis(json.dumps(_payload(**{field: value})))

        assert field in str(exc_info.value)

    def test_integral_float_score_is_accepted(self):
        analysis = parse_candidate_analysis(json.dumps(_payload(overall_score=72.0)))

        assert analysis.overall_score == 72

    @pytest.mark.parametrize("field", [
        "skills_score",
        "experience_score",
        "education_score",
        "overall_score",
        "skills",
        "recommendations",
        "summary",
        "experience_details",
        "education_details",
    ])
    def test_missing_field_raises(self, field):
        data = _payload()
        del data[field]

        with pytest.raises(ParseError) as exc_info:
            parse_candidate_analysis(json.dumps(data))

        assert field in str(exc_info.value)

    def test_malformed_json_raises(self):
        with pytest.raises(ParseError):
            parse_candidate_analysis('{"skills_score": 80,}')

    def test_unique_skills_drops_case_duplicates(self):
        raw = json.dumps(_payload(skills=[
            {"name": "Python", "proficiency": "advanced"},
            {"name": "python", "proficiency": "expert"},
            {"name": "SQL", "proficiency": "intermediate"},
        ]))

        names = [s.name for s in parse_candidate_analysis(raw).unique_skills()]
        assert names == ["Python", "SQL"]
