"""Evaluation runner - runs every declared evaluation against its own tool-server session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .agent_loop import run_agent_loop
from .grading import grade
from .models import ChatModel
from .session import ServerSpec, ToolServerSession, open_session
from .types import EvalConfig, EvalFunction, EvalResult
from ..observability.instrumentation import ToolCallInstrumentation
from ..utils.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_EVAL_TIMEOUT_S,
    DEFAULT_LOOP_TIMEOUT_S,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_SYSTEM_PROMPT,
)
from ..utils.exceptions import GradingFormatError, SessionError, ToolError
from ..utils.io import now

logger = logging.getLogger(__name__)


@dataclass
class LoopLimits:
    """Bounds for one agent loop."""
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    time_limit_s: Optional[float] = DEFAULT_LOOP_TIMEOUT_S
    system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT


async def run_and_grade(
    model: ChatModel,
    prompt: str,
    session: ToolServerSession,
    *,
    grader_model: Optional[ChatModel] = None,
    expected_result: Optional[str] = None,
    limits: Optional[LoopLimits] = None,
) -> EvalResult:
    """Run the agent loop for ``prompt`` and grade the transcript."""
    limits = limits or LoopLimits()
    transcript = await run_agent_loop(
        model,
        prompt,
        session,
        max_iterations=limits.max_iterations,
        time_limit_s=limits.time_limit_s,
        system_prompt=limits.system_prompt,
    )
    logger.debug(
        "Transcript for %r: %s after %d steps, %d tool calls",
        prompt[:60], transcript.terminated_reason, transcript.steps, transcript.tool_calls,
    )
    return await grade(grader_model or model, prompt, transcript, expected_result=expected_result)


def prompt_eval(
    name: str,
    description: str,
    prompt: str,
    *,
    grader_model: Optional[ChatModel] = None,
    expected_result: Optional[str] = None,
    limits: Optional[LoopLimits] = None,
) -> EvalFunction:
    """Wrap a prompt as an agent-loop-then-grade evaluation."""

    async def run(model: ChatModel, session: ToolServerSession) -> EvalResult:
        return await run_and_grade(
            model,
            prompt,
            session,
            grader_model=grader_model,
            expected_result=expected_result,
            limits=limits,
        )

    return EvalFunction(name=name, description=description, run=run)


def _coerce_result(value: Any) -> EvalResult:
    if isinstance(value, EvalResult):
        return EvalResult.from_mapping(value.to_dict())
    return EvalResult.from_mapping(value)


async def _run_one(
    eval_fn: EvalFunction,
    model: ChatModel,
    server: ServerSpec,
    eval_timeout_s: Optional[float],
    instrumentation: Optional[ToolCallInstrumentation],
) -> EvalResult:
    """Run one evaluation; every failure becomes a degraded result for this evaluation only."""
    logger.info("Running evaluation: %s", eval_fn.name)
    t0 = now()
    try:
        async with asyncio.timeout(eval_timeout_s):
            async with open_session(server, instrumentation) as session:
                value = await eval_fn.run(model, session)
        result = _coerce_result(value)
    except TimeoutError:
        logger.warning("Evaluation %s timed out after %ss", eval_fn.name, eval_timeout_s)
        result = EvalResult.failure(f"Evaluation timed out after {eval_timeout_s}s")
    except SessionError as e:
        logger.error("Evaluation %s: tool server error: %s", eval_fn.name, e)
        result = EvalResult.failure(f"Tool server error: {e}")
    except ToolError as e:
        logger.error("Evaluation %s: tool error: %s", eval_fn.name, e)
        result = EvalResult.failure(f"Tool error: {e}")
    except GradingFormatError as e:
        logger.error("Evaluation %s returned an invalid result: %s", eval_fn.name, e)
        result = EvalResult.failure(f"Invalid evaluation result: {e}")
    except Exception as e:
        logger.exception("Evaluation %s failed", eval_fn.name)
        result = EvalResult.failure(f"Error running evaluation: {type(e).__name__}: {e}")

    logger.info(
        "Finished evaluation %s in %.2fs (mean score %.2f)",
        eval_fn.name, now() - t0, result.mean_score,
    )
    return result


async def run_all_evals(
    config: EvalConfig,
    server: ServerSpec,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    eval_timeout_s: Optional[float] = DEFAULT_EVAL_TIMEOUT_S,
    instrumentation: Optional[ToolCallInstrumentation] = None,
) -> Dict[str, EvalResult]:
    """Run every evaluation in ``config`` and return results in declaration order.

    Args:
        config: Model and evaluations
        server: How to launch the tool server; each evaluation gets its own process
        concurrency: Maximum number of evaluations (and tool-server processes) at once
        eval_timeout_s: Budget for one evaluation, covering startup, loop and grading.
            Shutting the server down after the budget expires is not counted and
            can add the transport's shutdown grace period.
        instrumentation: Optional tool-call wrapper injected into every session

    Returns:
        Mapping of evaluation name to result, with exactly one entry per declared evaluation
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _bounded(eval_fn: EvalFunction) -> EvalResult:
        async with semaphore:
            return await _run_one(eval_fn, config.model, server, eval_timeout_s, instrumentation)

    logger.info("Running %d evaluations (concurrency=%d)", len(config.evals), max(1, concurrency))
    results = await asyncio.gather(*(_bounded(ev) for ev in config.evals))
    return {ev.name: result for ev, result in zip(config.evals, results)}


def run_all_evals_sync(config: EvalConfig, server: ServerSpec, **kwargs: Any) -> Dict[str, EvalResult]:
    """Synchronous wrapper around run_all_evals()."""
    return asyncio.run(run_all_evals(config, server, **kwargs))
