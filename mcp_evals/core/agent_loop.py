"""Agent loop - drives a model through a bounded tool-use conversation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from .models import ChatModel
from .session import ToolServerSession
from .tools import build_tools_schema
from .types import JSON, Message, Transcript
from ..utils.constants import (
    DEFAULT_LOOP_TIMEOUT_S,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_SYSTEM_PROMPT,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    TERMINATED_FINAL_ANSWER,
    TERMINATED_MAX_ITERATIONS,
    TERMINATED_TIMEOUT,
)
from ..utils.helpers import create_tool_message, extract_tool_name_from_call, parse_tool_call_arguments
from ..utils.io import now

logger = logging.getLogger(__name__)


def _normalize_reply(reply: Any, step: int) -> Message:
    """Coerce a model reply into an assistant message with identified tool calls."""
    if isinstance(reply, str):
        return {"role": ROLE_ASSISTANT, "content": reply}
    if not isinstance(reply, dict):
        raise TypeError(f"Model returned {type(reply).__name__}, expected an assistant message")

    msg = dict(reply)
    msg["role"] = ROLE_ASSISTANT
    msg["content"] = msg.get("content") or ""
    tool_calls = []
    for i, tc in enumerate(msg.get("tool_calls") or []):
        tc = dict(tc)
        tc["id"] = str(tc.get("id") or f"call_{step}_{i}")
        tc.setdefault("type", "function")
        tool_calls.append(tc)
    if tool_calls:
        msg["tool_calls"] = tool_calls
    else:
        msg.pop("tool_calls", None)
    return msg


async def _execute_tool_calls(
    session: ToolServerSession,
    transcript: Transcript,
    tool_calls: List[JSON],
) -> None:
    """Execute requested tool calls in order, appending each result to the transcript.

    Malformed arguments are reported back to the model as a tool message so it
    can correct itself on the next turn. Tool failures propagate as ToolError.
    """
    for tc in tool_calls:
        tc_id = tc["id"]
        name = extract_tool_name_from_call(tc)
        transcript.tool_calls += 1

        try:
            args = parse_tool_call_arguments(tc)
        except ValueError as e:
            logger.info("Malformed arguments for tool %s: %s", name, e)
            transcript.append(create_tool_message({"error": f"invalid_tool_arguments: {e}"}, tc_id))
            continue

        logger.debug("Tool call %s(%s)", name, args)
        result = await session.call_tool(name, args)
        transcript.append(create_tool_message(result.content, tc_id))


async def run_agent_loop(
    model: ChatModel,
    prompt: str,
    session: ToolServerSession,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    time_limit_s: Optional[float] = DEFAULT_LOOP_TIMEOUT_S,
    system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT,
) -> Transcript:
    """
    Runs the canonical loop:
      - model returns an assistant message
      - if it has tool_calls: the session executes them and tool messages are appended
      - else: the message is the final answer; done

    Stops early with ``max_iterations`` when the iteration bound is reached and
    with ``timeout`` when the wall-clock bound expires; both transcripts are
    still gradable.

    Raises:
        ToolError: If a requested tool is unknown or fails
        SessionError: If the session breaks
    """
    transcript = Transcript(prompt=prompt)
    if system_prompt:
        transcript.append({"role": ROLE_SYSTEM, "content": system_prompt})
    transcript.append({"role": ROLE_USER, "content": prompt})

    t0 = now()
    deadline = asyncio.timeout(time_limit_s)
    try:
        async with deadline:
            tools_schema = build_tools_schema(await session.list_tools())

            for step in range(max_iterations):
                reply = await model.complete(transcript.messages, tools_schema or None)
                assistant_msg = _normalize_reply(reply, step)
                transcript.append(assistant_msg)
                transcript.steps += 1

                tool_calls = assistant_msg.get("tool_calls") or []
                if not tool_calls:
                    transcript.terminated_reason = TERMINATED_FINAL_ANSWER
                    break

                await _execute_tool_calls(session, transcript, tool_calls)
            else:
                transcript.terminated_reason = TERMINATED_MAX_ITERATIONS
                logger.info("Agent loop hit max_iterations=%d for prompt %r", max_iterations, prompt[:60])
    except TimeoutError:
        if not deadline.expired():
            raise
        transcript.terminated_reason = TERMINATED_TIMEOUT
        transcript.error = f"agent loop exceeded {time_limit_s}s"
        logger.warning("Agent loop timed out after %ss for prompt %r", time_limit_s, prompt[:60])

    transcript.duration_s = round(now() - t0, 4)
    return transcript
