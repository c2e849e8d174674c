"""
Defensive parsing of classification responses.

Models sometimes wrap the structured payload in prose or emit more than one
object. Only the first balanced {...} object is taken; anything after it is
ignored.
"""
import json
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from core.errors import ParseError
from core.llm.schema_models import CandidateAnalysis

logger = logging.getLogger(__name__)


def extract_first_json_object(text: Optional[str]) -> str:
    """Return the first balanced brace-delimited object in text.

    Braces inside JSON strings (including escaped quotes) do not count
    towards nesting.

    Raises:
        ParseError: no opening brace, or the object never closes
    """
    if not text:
        raise ParseError("Classification response was empty")

    start = text.find('{')
    if start < 0:
        raise ParseError("Classification response contained no JSON object")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    raise ParseError("Classification response contained an unterminated JSON object")


def extract_tool_arguments(response: Any, tool_name: str) -> str:
    """Pull the raw argument string of the forced tool call out of a chat completion.

    Falls back to the message content for providers that answer inline.
    """
    try:
        message = response.choices[0].message
    except (IndexError, AttributeError) as e:
        raise ParseError(f"Classification response had no message: {e}") from e

    for tool_call in getattr(message, 'tool_calls', None) or []:
        function = getattr(tool_call, 'function', None)
        if function is not None and function.name == tool_name and function.arguments:
            return function.arguments

    content = getattr(message, 'content', None)
    if isinstance(content, str) and content.strip():
        logger.warning(f"No '{tool_name}' tool call in response, falling back to message content")
        return content

    raise ParseError(f"Classification response did not call '{tool_name}'")


def parse_candidate_analysis(raw: str) -> CandidateAnalysis:
    """Parse and validate the first JSON object in raw."""
    payload = extract_first_json_object(raw)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Classification response was not valid JSON: {e}") from e

    try:
        return CandidateAnalysis.model_validate(data)
    except PydanticValidationError as e:
        fields = ', '.join(
            '.'.join(str(part) for part in err['loc']) or '<root>' for err in e.errors()
        )
        raise ParseError(f"Classification response failed validation ({fields})") from e
