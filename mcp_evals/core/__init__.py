"""Core engine: tool-server sessions, the agent loop, grading and the runner."""

from .types import (
    JSON,
    Message,
    EvalConfig,
    EvalFunction,
    EvalResult,
    ToolCatalogEntry,
    ToolResult,
    Transcript,
)
from .models import ChatModel, OpenAIChatModel, create_model
from .session import ServerSpec, ToolServerSession, open_session
from .tools import ToolCallRecord, build_tools_schema, index_tool_calls
from .agent_loop import run_agent_loop
from .grading import build_rubric_prompt, grade, parse_grading_response
from .runner import LoopLimits, prompt_eval, run_all_evals, run_all_evals_sync, run_and_grade

__all__ = [
    # Types
    "JSON",
    "Message",
    "EvalConfig",
    "EvalFunction",
    "EvalResult",
    "ToolCatalogEntry",
    "ToolResult",
    "Transcript",
    # Models
    "ChatModel",
    "OpenAIChatModel",
    "create_model",
    # Session manager
    "ServerSpec",
    "ToolServerSession",
    "open_session",
    # Tools
    "ToolCallRecord",
    "build_tools_schema",
    "index_tool_calls",
    # Agent loop
    "run_agent_loop",
    # Grading
    "build_rubric_prompt",
    "grade",
    "parse_grading_response",
    # Runner
    "LoopLimits",
    "prompt_eval",
    "run_all_evals",
    "run_all_evals_sync",
    "run_and_grade",
]
