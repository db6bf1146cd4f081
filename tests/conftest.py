"""Shared fixtures: a scripted chat model and the FastMCP test server."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from mcp_evals.core.models import ChatModel
from mcp_evals.core.session import ServerSpec

FIXTURES = Path(__file__).parent / "fixtures"
MOCK_SERVER = FIXTURES / "mock_server.py"


def tool_call(name: str, arguments: Any, call_id: Optional[str] = None) -> Dict[str, Any]:
    """Build an assistant message requesting a single tool call."""
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    call = {"type": "function", "function": {"name": name, "arguments": arguments}}
    if call_id is not None:
        call["id"] = call_id
    return {"role": "assistant", "content": "", "tool_calls": [call]}


def grading_reply(score: int = 4, comments: str = "Used the right tool") -> str:
    return json.dumps({
        "accuracy": score,
        "completeness": score,
        "relevance": score,
        "clarity": score,
        "reasoning": score,
        "overall_comments": comments,
    })


class ScriptedModel(ChatModel):
    """Chat model that replays queued replies and records every request."""

    def __init__(self, replies: List[Any], name: str = "scripted"):
        self.name = name
        self.replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages, tools=None):
        self.calls.append({"messages": [dict(m) for m in messages], "tools": tools})
        if not self.replies:
            raise AssertionError("ScriptedModel ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(messages, tools)
        return reply


class LoopingModel(ChatModel):
    """Chat model that requests the same tool call forever."""

    def __init__(self, name: str, arguments: Dict[str, Any]):
        self.tool_name = name
        self.arguments = arguments
        self.calls = 0

    async def complete(self, messages, tools=None):
        self.calls += 1
        return tool_call(self.tool_name, self.arguments)


@pytest.fixture
def server_spec() -> ServerSpec:
    return ServerSpec.from_path(MOCK_SERVER, env={"MOCK_SERVER_TIMEOUT_SLEEP_S": "6"})


@pytest.fixture
def missing_server_spec(tmp_path) -> ServerSpec:
    return ServerSpec(command=str(tmp_path / "no-such-server"), startup_timeout_s=5)
