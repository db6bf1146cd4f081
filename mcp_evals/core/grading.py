"""Grading engine - scores a transcript against the fixed five-dimension rubric.

``grade`` always returns a complete EvalResult. A reply that does not match
the rubric schema is retried once with a stricter instruction; if it still
does not parse, the result is synthesized with every score at 0 and a comment
naming the failure.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import ChatModel
from .tools import index_tool_calls
from .types import EvalResult, Message, Transcript
from ..utils.constants import (
    MAX_SCORE,
    MIN_SCORE,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    SCORE_FIELDS,
    TERMINATED_MAX_ITERATIONS,
    TERMINATED_TIMEOUT,
)
from ..utils.exceptions import GradingFormatError

logger = logging.getLogger(__name__)


class RubricScores(BaseModel):
    """Schema the grading model must answer with."""
    model_config = ConfigDict(extra="ignore")

    accuracy: int = Field(ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    completeness: int = Field(ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    relevance: int = Field(ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    clarity: int = Field(ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    reasoning: int = Field(ge=MIN_SCORE, le=MAX_SCORE, strict=True)
    overall_comments: str = Field(strict=True)


RUBRIC_DESCRIPTIONS: Dict[str, str] = {
    "accuracy": "Is the final answer factually correct and consistent with the tool results?",
    "completeness": "Does the answer address every part of the request?",
    "relevance": "Were the right tools chosen and is the answer on topic?",
    "clarity": "Is the answer clear, well organized and easy to follow?",
    "reasoning": "Were tool calls and intermediate steps logical and well justified?",
}

GRADER_SYSTEM_PROMPT = (
    "You are an expert evaluator of AI assistants that use tools. "
    "You grade conversations strictly against the rubric you are given."
)

STRICT_RETRY_INSTRUCTION = (
    "Your previous reply could not be parsed. Respond with the JSON object only, "
    "with no prose and no code fences, matching this schema exactly:\n{schema}"
)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def rubric_schema() -> Dict[str, Any]:
    """JSON schema of the expected grading reply."""
    properties: Dict[str, Any] = {
        name: {"type": "integer", "minimum": MIN_SCORE, "maximum": MAX_SCORE}
        for name in SCORE_FIELDS
    }
    properties["overall_comments"] = {"type": "string"}
    return {
        "type": "object",
        "properties": properties,
        "required": [*SCORE_FIELDS, "overall_comments"],
    }


def render_transcript(transcript: Transcript) -> str:
    """Render the conversation, including tool calls and results, as plain text."""
    names = {r.tool_call_id: r.name for r in index_tool_calls(transcript.messages)}
    lines: List[str] = []
    for m in transcript.messages:
        role = m.get("role")
        content = str(m.get("content", "") or "")
        if role == ROLE_SYSTEM:
            continue
        if role == ROLE_USER:
            lines.append(f"[user] {content}")
        elif role == ROLE_ASSISTANT:
            if content:
                lines.append(f"[assistant] {content}")
            for tc in m.get("tool_calls") or []:
                fn = tc.get("function") or {}
                lines.append(f"[assistant -> tool call] {fn.get('name', '')}({fn.get('arguments', '')})")
        elif role == ROLE_TOOL:
            name = names.get(str(m.get("tool_call_id", "")), "tool")
            lines.append(f"[tool result: {name}] {content}")
    return "\n".join(lines) if lines else "(empty transcript)"


def _outcome_note(transcript: Transcript) -> str:
    if transcript.terminated_reason == TERMINATED_TIMEOUT:
        return "The assistant ran out of time; the transcript was truncated before a final answer."
    if transcript.terminated_reason == TERMINATED_MAX_ITERATIONS:
        return "The assistant hit the maximum number of iterations; the transcript is incomplete."
    return "The assistant produced a final answer."


def build_rubric_prompt(prompt: str, transcript: Transcript, expected_result: Optional[str] = None) -> str:
    """Build the deterministic grading instruction."""
    criteria = "\n".join(
        f"- {name} ({MIN_SCORE}-{MAX_SCORE}): {RUBRIC_DESCRIPTIONS[name]}" for name in SCORE_FIELDS
    )
    parts = [
        "Evaluate how well the assistant used its tools to answer the user's request.",
        "",
        f"User request:\n{prompt}",
    ]
    if expected_result:
        parts += ["", f"Expected result:\n{expected_result}"]
    parts += [
        "",
        f"Outcome: {_outcome_note(transcript)}",
        "",
        f"Conversation:\n{render_transcript(transcript)}",
        "",
        f"Score each dimension with an integer from {MIN_SCORE} (poor) to {MAX_SCORE} (excellent):",
        criteria,
        "- overall_comments: a short explanation of the scores.",
        "",
        "Respond with a single JSON object matching this schema:",
        json.dumps(rubric_schema(), indent=2),
    ]
    return "\n".join(parts)


def _extract_json(text: str) -> Any:
    text = text.strip()
    candidates = [text]
    fence = _FENCE_RE.search(text)
    if fence:
        candidates.append(fence.group(1).strip())
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise GradingFormatError("Grader reply is not valid JSON", raw=text)


def parse_grading_response(text: str) -> EvalResult:
    """Parse and validate a grading reply.

    Raises:
        GradingFormatError: If the reply is not a JSON object matching the rubric
    """
    data = _extract_json(text or "")
    if not isinstance(data, dict):
        raise GradingFormatError(f"Grader reply is {type(data).__name__}, expected an object", raw=text)
    try:
        scores = RubricScores.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'reply'}: {err['msg']}" for err in e.errors()
        )
        raise GradingFormatError(f"Grader reply does not match rubric: {problems}", raw=text) from e
    return EvalResult(**scores.model_dump())


def _reply_text(reply: Any) -> str:
    if isinstance(reply, dict):
        return str(reply.get("content", "") or "")
    return str(reply or "")


async def grade(
    model: ChatModel,
    prompt: str,
    transcript: Transcript,
    *,
    expected_result: Optional[str] = None,
) -> EvalResult:
    """Score a transcript against the rubric. Never raises for model or format failures."""
    messages: List[Message] = [
        {"role": ROLE_SYSTEM, "content": GRADER_SYSTEM_PROMPT},
        {"role": ROLE_USER, "content": build_rubric_prompt(prompt, transcript, expected_result)},
    ]

    try:
        reply = await model.complete(messages)
    except Exception as e:
        logger.error("Grading model call failed: %s", e)
        return EvalResult.failure(f"Grading failed: grading model raised {type(e).__name__}: {e}")

    text = _reply_text(reply)
    try:
        return parse_grading_response(text)
    except GradingFormatError as e:
        logger.warning("Unparseable grading reply, retrying once: %s", e)

    messages.append({"role": ROLE_ASSISTANT, "content": text})
    messages.append({
        "role": ROLE_USER,
        "content": STRICT_RETRY_INSTRUCTION.format(schema=json.dumps(rubric_schema())),
    })

    try:
        reply = await model.complete(messages)
    except Exception as e:
        logger.error("Grading model retry failed: %s", e)
        return EvalResult.failure(f"Grading failed: grading model raised {type(e).__name__} on retry: {e}")

    try:
        return parse_grading_response(_reply_text(reply))
    except GradingFormatError as e:
        logger.error("Grading reply still unparseable after retry: %s", e)
        return EvalResult.failure(f"Grading failed: could not parse grader response after retry: {e}")
