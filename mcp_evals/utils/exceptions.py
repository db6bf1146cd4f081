"""Custom exceptions for the evaluation harness."""


class EvalError(Exception):
    """Base exception for evaluation-related errors."""
    pass


class SessionError(EvalError):
    """Raised when the tool-server session cannot be used."""
    pass


class ServerStartFailure(SessionError):
    """Raised when the tool server fails to launch or complete the handshake."""
    def __init__(self, command: str, message: str, original_error: Exception | None = None):
        self.command = command
        self.original_error = original_error
        super().__init__(f"Tool server '{command}' failed to start: {message}")


class ProtocolError(SessionError):
    """Raised on a malformed message or a broken transport."""
    pass


class ToolError(EvalError):
    """Base exception for tool invocation failures."""
    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class ToolNotFound(ToolError):
    """Raised when a tool is not in the server's catalog."""
    def __init__(self, tool_name: str, available: list[str] | None = None):
        self.available = list(available or [])
        message = f"Unknown tool '{tool_name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(tool_name, message)


class ToolExecutionError(ToolError):
    """Raised when tool execution fails."""
    def __init__(self, tool_name: str, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(tool_name, f"Tool '{tool_name}' execution failed: {message}")


class GradingFormatError(EvalError):
    """Raised when a grading response does not match the rubric schema."""
    def __init__(self, message: str, raw: str | None = None):
        self.raw = raw
        super().__init__(message)


class ConfigError(EvalError):
    """Raised when evaluation declarations are missing or invalid."""
    pass
