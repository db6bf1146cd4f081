"""mcp-evals - score how well a model uses the tools of an MCP server."""

from .config import ConfigSource, ConfigSourceKind, Settings, load_eval_config
from .core import (
    ChatModel,
    EvalConfig,
    EvalFunction,
    EvalResult,
    LoopLimits,
    OpenAIChatModel,
    ServerSpec,
    ToolServerSession,
    Transcript,
    create_model,
    grade,
    open_session,
    prompt_eval,
    run_agent_loop,
    run_all_evals,
    run_all_evals_sync,
    run_and_grade,
)
from .observability import ToolCallInstrumentation, ToolRegistration
from .utils.exceptions import (
    ConfigError,
    EvalError,
    GradingFormatError,
    ProtocolError,
    ServerStartFailure,
    SessionError,
    ToolError,
    ToolExecutionError,
    ToolNotFound,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "EvalConfig",
    "EvalFunction",
    "EvalResult",
    "Transcript",
    # Models
    "ChatModel",
    "OpenAIChatModel",
    "create_model",
    # Sessions
    "ServerSpec",
    "ToolServerSession",
    "open_session",
    # Running and grading
    "LoopLimits",
    "grade",
    "prompt_eval",
    "run_agent_loop",
    "run_all_evals",
    "run_all_evals_sync",
    "run_and_grade",
    # Config
    "ConfigSource",
    "ConfigSourceKind",
    "Settings",
    "load_eval_config",
    # Observability
    "ToolCallInstrumentation",
    "ToolRegistration",
    # Errors
    "ConfigError",
    "EvalError",
    "GradingFormatError",
    "ProtocolError",
    "ServerStartFailure",
    "SessionError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFound",
]
