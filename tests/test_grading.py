"""Tests for the grading engine."""

import json

import pytest

from mcp_evals.core.grading import (
    STRICT_RETRY_INSTRUCTION,
    build_rubric_prompt,
    grade,
    parse_grading_response,
    render_transcript,
)
from mcp_evals.core.types import EvalResult, Transcript
from mcp_evals.utils.exceptions import GradingFormatError

from conftest import ScriptedModel, grading_reply, tool_call


def _transcript(terminated_reason="final_answer"):
    call = tool_call("multiply", {"a": 4, "b": 7}, call_id="call_1")
    return Transcript(
        prompt="What is 4 times 7?",
        messages=[
            {"role": "system", "content": "be helpful"},
            {"role": "user", "content": "What is 4 times 7?"},
            call,
            {"role": "tool", "tool_call_id": "call_1", "content": "28"},
            {"role": "assistant", "content": "4 times 7 is 28."},
        ],
        terminated_reason=terminated_reason,
        steps=2,
        tool_calls=1,
    )


def test_render_transcript_shows_calls_and_results():
    """Test rendering tool calls and results for the grader."""
    text = render_transcript(_transcript())
    assert "[user] What is 4 times 7?" in text
    assert '[assistant -> tool call] multiply({"a": 4, "b": 7})' in text
    assert "[tool result: multiply] 28" in text
    assert "[assistant] 4 times 7 is 28." in text
    assert "be helpful" not in text


def test_build_rubric_prompt_includes_expected_result_and_outcome():
    """Test that the rubric prompt carries the expected result and outcome."""
    prompt = build_rubric_prompt("What is 4 times 7?", _transcript("timeout"), expected_result="28")
    assert "Expected result:\n28" in prompt
    assert "ran out of time" in prompt
    for field in ("accuracy", "completeness", "relevance", "clarity", "reasoning", "overall_comments"):
        assert field in prompt


def test_build_rubric_prompt_is_deterministic():
    """Test that the rubric prompt is deterministic."""
    t = _transcript()
    assert build_rubric_prompt("q", t) == build_rubric_prompt("q", t)


def test_parse_grading_response_plain_json():
    """Test parsing a plain JSON grading reply."""
    result = parse_grading_response(grading_reply(5, "great"))
    assert result == EvalResult(5, 5, 5, 5, 5, "great")


def test_parse_grading_response_in_code_fence():
    """Test parsing a grading reply inside a code fence."""
    text = f"Here is my evaluation:\n```json\n{grading_reply(3)}\n```"
    assert parse_grading_response(text).accuracy == 3


def test_parse_grading_response_with_surrounding_prose():
    """Test parsing a grading reply surrounded by prose."""
    text = f"Scores follow. {grading_reply(2)} Thanks!"
    assert parse_grading_response(text).clarity == 2


@pytest.mark.parametrize("text", [
    "not json at all",
    "[1, 2, 3]",
    json.dumps({"accuracy": 5}),
    grading_reply(9),
    grading_reply(0),
    json.dumps({**json.loads(grading_reply(4)), "accuracy": "4"}),
])
def test_parse_grading_response_rejects_bad_replies(text):
    """Test that malformed grading replies raise GradingFormatError."""
    with pytest.raises(GradingFormatError):
        parse_grading_response(text)


@pytest.mark.asyncio
async def test_grade_returns_scores():
    """Test grading with a well-formed reply."""
    model = ScriptedModel([{"role": "assistant", "content": grading_reply(4, "solid")}])
    result = await grade(model, "What is 4 times 7?", _transcript())
    assert result == EvalResult(4, 4, 4, 4, 4, "solid")
    assert len(model.calls) == 1
    assert model.calls[0]["tools"] is None


@pytest.mark.asyncio
async def test_grade_retries_once_with_strict_instruction():
    """Test the single retry after an unparseable reply."""
    model = ScriptedModel(["I think it went well.", grading_reply(5)])
    result = await grade(model, "q", _transcript())
    assert result.accuracy == 5
    assert len(model.calls) == 2
    retry_messages = model.calls[1]["messages"]
    assert retry_messages[-2] == {"role": "assistant", "content": "I think it went well."}
    assert retry_messages[-1]["content"].startswith(STRICT_RETRY_INSTRUCTION.split("{")[0])


@pytest.mark.asyncio
async def test_grade_gives_zero_scores_after_failed_retry():
    """Test that two unparseable replies give zero scores."""
    model = ScriptedModel(["nope", "still nope", grading_reply(5)])
    result = await grade(model, "q", _transcript())
    assert result.failed
    assert result.overall_comments.startswith("Grading failed")
    assert len(model.calls) == 2


@pytest.mark.asyncio
async def test_grade_model_error_gives_zero_scores():
    """Test that a grading model error gives zero scores."""
    model = ScriptedModel([RuntimeError("rate limited")])
    result = await grade(model, "q", _transcript())
    assert result.failed
    assert "rate limited" in result.overall_comments
