"""Stream parsing and response aggregation."""

from agent_cli_sdk.parsing.aggregator import EventRules, ResponseAggregator
from agent_cli_sdk.parsing.json_extractor import (
    extract_json,
    parse_json_response,
    validate_structured_output,
)
from agent_cli_sdk.parsing.jsonl import StreamEventParser

__all__ = [
    "EventRules",
    "ResponseAggregator",
    "StreamEventParser",
    "extract_json",
    "parse_json_response",
    "validate_structured_output",
]
