"""Utility functions for message and tool processing."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .constants import ROLE_ASSISTANT, ROLE_TOOL, ROLE_USER


def convert_message_to_openai_format(message: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a transcript message to OpenAI API format.

    Diagnostic keys (prefixed with ``_``) are dropped.

    Args:
        message: Transcript message dictionary

    Returns:
        OpenAI-formatted message dictionary
    """
    openai_msg: Dict[str, Any] = {
        "role": message.get("role", ROLE_USER),
        "content": message.get("content", "") or "",
    }

    if message.get("role") == ROLE_ASSISTANT and message.get("tool_calls"):
        openai_msg["tool_calls"] = message["tool_calls"]
    if "name" in message:
        openai_msg["name"] = message["name"]
    if "tool_call_id" in message:
        openai_msg["tool_call_id"] = message["tool_call_id"]

    return openai_msg


def convert_messages_to_openai_format(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert a list of transcript messages to OpenAI API format."""
    return [convert_message_to_openai_format(msg) for msg in messages]


def parse_tool_call_arguments(tool_call: Dict[str, Any]) -> Dict[str, Any]:
    """Parse tool call arguments from OpenAI format.

    Args:
        tool_call: Tool call dictionary with function.arguments as JSON string

    Returns:
        Parsed arguments dictionary

    Raises:
        ValueError: If arguments are not a JSON object
    """
    raw = (tool_call.get("function") or {}).get("arguments")
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        args = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to parse tool call arguments: {e}") from e
    if not isinstance(args, dict):
        raise ValueError(f"Tool call arguments must be a JSON object, got {type(args).__name__}")
    return args


def extract_tool_name_from_call(tool_call: Dict[str, Any]) -> str:
    """Extract tool name from tool call dictionary."""
    return str((tool_call.get("function") or {}).get("name", "") or "")


def create_tool_message(content: Any, tool_call_id: str) -> Dict[str, Any]:
    """Create a tool message for the transcript.

    Args:
        content: Tool result content; non-string values are JSON-encoded
        tool_call_id: ID of the tool call this message responds to

    Returns:
        Tool message dictionary
    """
    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False)
    return {
        "role": ROLE_TOOL,
        "content": content,
        "tool_call_id": tool_call_id,
    }
