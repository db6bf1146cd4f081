"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Optional

from ..utils.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_EVAL_TIMEOUT_S,
    DEFAULT_LOOP_TIMEOUT_S,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_STARTUP_TIMEOUT_S,
)
from ..utils.exceptions import ConfigError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


@dataclass
class Settings:
    """Harness settings. Command-line options override these."""
    concurrency: int = DEFAULT_CONCURRENCY
    eval_timeout_s: float = DEFAULT_EVAL_TIMEOUT_S
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    loop_timeout_s: float = DEFAULT_LOOP_TIMEOUT_S
    startup_timeout_s: float = DEFAULT_STARTUP_TIMEOUT_S
    log_level: str = "INFO"
    metrics_port: Optional[int] = None
    otel_enabled: bool = False
    otel_service_name: str = "mcp-evals"
    otel_endpoint: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from MCP_EVALS_* and OTEL_* environment variables.

        Raises:
            ConfigError: If a numeric variable cannot be parsed
        """
        metrics_port = os.getenv("MCP_EVALS_METRICS_PORT")
        return cls(
            concurrency=_env_int("MCP_EVALS_CONCURRENCY", DEFAULT_CONCURRENCY),
            eval_timeout_s=_env_float("MCP_EVALS_EVAL_TIMEOUT_S", DEFAULT_EVAL_TIMEOUT_S),
            max_iterations=_env_int("MCP_EVALS_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS),
            loop_timeout_s=_env_float("MCP_EVALS_LOOP_TIMEOUT_S", DEFAULT_LOOP_TIMEOUT_S),
            startup_timeout_s=_env_float("MCP_EVALS_STARTUP_TIMEOUT_S", DEFAULT_STARTUP_TIMEOUT_S),
            log_level=os.getenv("MCP_EVALS_LOG_LEVEL", "INFO").upper(),
            metrics_port=_env_int("MCP_EVALS_METRICS_PORT", 0) if metrics_port else None,
            otel_enabled=_env_bool("OTEL_ENABLED", False),
            otel_service_name=os.getenv("OTEL_SERVICE_NAME", "mcp-evals"),
            otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        )
