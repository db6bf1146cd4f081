"""Tool schemas for the model and tool-call indexing of transcripts."""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .types import JSON, Message, ToolCatalogEntry
from ..utils.constants import ROLE_ASSISTANT, ROLE_TOOL
from ..utils.helpers import extract_tool_name_from_call, parse_tool_call_arguments

EMPTY_PARAMETERS: JSON = {"type": "object", "properties": {}}


def build_tools_schema(catalog: List[ToolCatalogEntry]) -> List[JSON]:
    """Present a discovered tool catalog as OpenAI-style function tools."""
    schema = []
    for entry in catalog:
        parameters = dict(entry.input_schema) if entry.input_schema else dict(EMPTY_PARAMETERS)
        parameters.setdefault("type", "object")
        parameters.setdefault("properties", {})
        schema.append({
            "type": "function",
            "function": {
                "name": entry.name,
                "description": entry.description or f"Tool '{entry.name}'",
                "parameters": parameters,
            },
        })
    return schema


@dataclass
class ToolCallRecord:
    """A requested tool call and the tool message that answered it."""
    tool_call_id: str
    name: str
    arguments: JSON
    result_raw: str = ""
    result: Any = None
    error: Optional[str] = None


def _decode(content: str) -> Any:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return content


def index_tool_calls(messages: List[Message]) -> List[ToolCallRecord]:
    """Pair each assistant tool call with its tool message by ``tool_call_id``.

    Records come back in the order the calls were requested. A call whose
    arguments did not parse, or whose result carries an ``error`` key, has
    ``error`` set.
    """
    records: Dict[str, ToolCallRecord] = {}
    for m in messages:
        role = m.get("role")
        if role == ROLE_ASSISTANT:
            for tc in m.get("tool_calls") or []:
                call_id = str(tc.get("id") or "")
                if not call_id:
                    continue
                record = ToolCallRecord(tool_call_id=call_id, name=extract_tool_name_from_call(tc), arguments={})
                try:
                    record.arguments = parse_tool_call_arguments(tc)
                except ValueError as e:
                    record.error = str(e)
                records[call_id] = record
        elif role == ROLE_TOOL:
            record = records.get(str(m.get("tool_call_id") or ""))
            if record is None:
                continue
            record.result_raw = str(m.get("content") or "")
            record.result = _decode(record.result_raw)
            if record.error is None and isinstance(record.result, dict) and "error" in record.result:
                record.error = str(record.result["error"])
    return list(records.values())
