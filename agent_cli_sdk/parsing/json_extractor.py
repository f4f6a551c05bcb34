"""Extraction and validation of JSON embedded in agent text output."""

import json
import re
from typing import Any, Dict, Type, Union

import jsonschema
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from agent_cli_sdk.errors import ParseError

ResponseSchema = Union[bool, Dict[str, Any], Type[BaseModel]]

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


def extract_json(content: str) -> str:
    """Extract JSON from content that may be wrapped in markdown or prose.

    Agents are asked for JSON but routinely wrap it in a code fence or
    introduce it with a sentence.

    Args:
        content: The agent output that may contain JSON

    Returns:
        Clean JSON string ready for parsing

    Raises:
        ValueError: If no valid JSON can be extracted
    """
    if not content or not content.strip():
        raise ValueError("Empty content")

    # First, try to parse as-is (best case: already clean JSON)
    content = content.strip()
    if _is_json(content):
        return content

    # Fenced code blocks, ```json ... ``` or ``` ... ```
    for block in _FENCE_PATTERN.findall(content):
        if _is_json(block):
            return block

    # JSON embedded in prose: decode one value at each opening bracket.
    # raw_decode stops at the first invalid character, so stray brackets
    # cost little.
    decoder = json.JSONDecoder()
    for start, char in enumerate(content):
        if char not in "{[":
            continue
        try:
            _, end = decoder.raw_decode(content, start)
        except (json.JSONDecodeError, RecursionError):
            continue
        return content[start:end]

    raise ValueError(f"Could not extract valid JSON from content: {content[:200]}...")


def parse_json_response(content: str) -> Any:
    """Parse JSON from agent output, handling markdown wrapping and prose.

    Raises:
        ValueError: If no valid JSON can be extracted
    """
    return json.loads(extract_json(content))


def validate_structured_output(text: str, schema: ResponseSchema) -> Any:
    """Extract JSON from ``text`` and validate it against ``schema``.

    ``schema`` may be ``True`` (any JSON value), a JSON Schema dict, or a
    pydantic model class, in which case a model instance is returned.

    Raises:
        ParseError: Extraction or validation failed; ``raw`` holds ``text``
    """
    try:
        value = parse_json_response(text)
    except ValueError as e:
        raise ParseError(f"No JSON found in output: {e}", raw=text) from e

    if schema is True:
        return value

    if isinstance(schema, dict):
        try:
            jsonschema.validate(instance=value, schema=schema)
        except jsonschema.ValidationError as e:
            path = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise ParseError(
                f"Output does not match schema at {path}: {e.message}", raw=text
            ) from e
        except jsonschema.SchemaError as e:
            raise ParseError(f"Invalid response schema: {e.message}", raw=text) from e
        return value

    if isinstance(schema, type) and issubclass(schema, BaseModel):
        try:
            return schema.model_validate(value)
        except PydanticValidationError as e:
            raise ParseError(
                f"Output does not match {schema.__name__}: {e.error_count()} error(s)",
                raw=text,
            ) from e

    raise ParseError(f"Unsupported response schema: {schema!r}", raw=text)


def _is_json(candidate: str) -> bool:
    try:
        json.loads(candidate)
        return True
    except json.JSONDecodeError:
        return False

