"""Core types for tool-use evaluations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from ..utils.constants import (
    FAILED_SCORE,
    MAX_SCORE,
    MIN_SCORE,
    ROLE_ASSISTANT,
    SCORE_FIELDS,
    TERMINATED_FINAL_ANSWER,
    TERMINATED_TIMEOUT,
)
from ..utils.exceptions import ConfigError, GradingFormatError

if TYPE_CHECKING:
    from .models import ChatModel
    from .session import ToolServerSession

# Core type aliases
JSON = Dict[str, Any]
Message = Dict[str, Any]


@dataclass(frozen=True)
class ToolCatalogEntry:
    """A tool discovered from the server's catalog."""
    name: str
    description: str
    input_schema: JSON = field(default_factory=dict)


@dataclass
class ToolResult:
    """Successful result of a tool invocation."""
    content: str
    raw: List[JSON] = field(default_factory=list)
    structured: Optional[JSON] = None


@dataclass
class Transcript:
    """Ordered record of one agent loop execution."""
    prompt: str
    messages: List[Message] = field(default_factory=list)
    terminated_reason: str = TERMINATED_FINAL_ANSWER  # final_answer | max_iterations | timeout
    steps: int = 0
    tool_calls: int = 0
    duration_s: float = 0.0
    error: Optional[str] = None

    def append(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def final_answer(self) -> str:
        for m in reversed(self.messages):
            if m.get("role") == ROLE_ASSISTANT:
                return str(m.get("content") or "")
        return ""

    @property
    def complete(self) -> bool:
        return self.terminated_reason == TERMINATED_FINAL_ANSWER

    @property
    def timed_out(self) -> bool:
        return self.terminated_reason == TERMINATED_TIMEOUT


@dataclass
class EvalResult:
    """Rubric scores for one evaluation.

    Graded results carry five integer scores in [1, 5]. A degraded result,
    produced when the evaluation could not be graded, carries all scores at 0
    and a comment explaining why.
    """
    accuracy: int
    completeness: int
    relevance: int
    clarity: int
    reasoning: int
    overall_comments: str

    @classmethod
    def failure(cls, comment: str) -> "EvalResult":
        """Build a degraded result with every score at the failure sentinel."""
        return cls(
            accuracy=FAILED_SCORE,
            completeness=FAILED_SCORE,
            relevance=FAILED_SCORE,
            clarity=FAILED_SCORE,
            reasoning=FAILED_SCORE,
            overall_comments=comment,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EvalResult":
        """Validate a mapping into an EvalResult.

        Raises:
            GradingFormatError: If a field is missing, not an integer, out of
                range, or the comments are not a string.
        """
        if not isinstance(data, Mapping):
            raise GradingFormatError(f"Expected an object, got {type(data).__name__}")

        missing = [k for k in (*SCORE_FIELDS, "overall_comments") if k not in data]
        if missing:
            raise GradingFormatError(f"Missing fields: {', '.join(missing)}")

        scores = {}
        for key in SCORE_FIELDS:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise GradingFormatError(f"Field '{key}' must be an integer, got {value!r}")
            scores[key] = value

        all_failed = all(v == FAILED_SCORE for v in scores.values())
        if not all_failed:
            out_of_range = [k for k, v in scores.items() if not MIN_SCORE <= v <= MAX_SCORE]
            if out_of_range:
                raise GradingFormatError(
                    f"Scores must be between {MIN_SCORE} and {MAX_SCORE}: {', '.join(out_of_range)}"
                )

        comments = data["overall_comments"]
        if not isinstance(comments, str):
            raise GradingFormatError("Field 'overall_comments' must be a string")

        return cls(overall_comments=comments, **scores)

    @property
    def failed(self) -> bool:
        return all(getattr(self, k) == FAILED_SCORE for k in SCORE_FIELDS)

    @property
    def mean_score(self) -> float:
        return sum(getattr(self, k) for k in SCORE_FIELDS) / len(SCORE_FIELDS)

    def to_dict(self) -> JSON:
        return asdict(self)


# (model, session) -> EvalResult, or a mapping validated into one
EvalRun = Callable[["ChatModel", "ToolServerSession"], Awaitable[Union[EvalResult, Mapping[str, Any]]]]


@dataclass
class EvalFunction:
    """A named evaluation."""
    name: str
    description: str
    run: EvalRun


@dataclass
class EvalConfig:
    """Model plus the ordered evaluations to run against it."""
    model: "ChatModel"
    evals: List[EvalFunction]

    def __post_init__(self) -> None:
        if not self.evals:
            raise ConfigError("Config must declare at least one evaluation")
        seen = set()
        for ev in self.evals:
            if not isinstance(ev, EvalFunction):
                raise ConfigError(f"Expected EvalFunction, got {type(ev).__name__}")
            if not ev.name or not str(ev.name).strip():
                raise ConfigError("Every evaluation needs a non-empty name")
            if ev.name in seen:
                raise ConfigError(f"Duplicate evaluation name: '{ev.name}'")
            seen.add(ev.name)

    @property
    def names(self) -> List[str]:
        return [ev.name for ev in self.evals]


__all__ = [
    "JSON",
    "Message",
    "ToolCatalogEntry",
    "ToolResult",
    "Transcript",
    "EvalResult",
    "EvalRun",
    "EvalFunction",
    "EvalConfig",
]
