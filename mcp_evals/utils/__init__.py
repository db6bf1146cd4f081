"""Utility functions for the evaluation harness."""

from .helpers import (
    convert_messages_to_openai_format,
    create_tool_message,
    extract_tool_name_from_call,
    parse_tool_call_arguments,
)
from .io import now, to_json

__all__ = [
    "convert_messages_to_openai_format",
    "create_tool_message",
    "extract_tool_name_from_call",
    "parse_tool_call_arguments",
    "now",
    "to_json",
]
