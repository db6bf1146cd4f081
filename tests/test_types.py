"""Tests for the evaluation data model."""

import pytest

from mcp_evals.core.types import EvalConfig, EvalFunction, EvalResult, Transcript
from mcp_evals.utils.exceptions import ConfigError, GradingFormatError

from conftest import ScriptedModel


async def _noop(model, session):
    return EvalResult.failure("unused")


def _scores(**overrides):
    data = {
        "accuracy": 5,
        "completeness": 4,
        "relevance": 3,
        "clarity": 2,
        "reasoning": 1,
        "overall_comments": "ok",
    }
    data.update(overrides)
    return data


def test_eval_result_from_mapping():
    """Test validating a mapping into an EvalResult."""
    result = EvalResult.from_mapping(_scores())
    assert result.accuracy == 5
    assert result.reasoning == 1
    assert result.overall_comments == "ok"
    assert not result.failed
    assert result.mean_score == 3.0


def test_eval_result_failure_is_all_zero():
    """Test the degraded result."""
    result = EvalResult.failure("server crashed")
    assert result.failed
    assert result.to_dict() == {
        "accuracy": 0,
        "completeness": 0,
        "relevance": 0,
        "clarity": 0,
        "reasoning": 0,
        "overall_comments": "server crashed",
    }


def test_eval_result_accepts_all_zero_mapping():
    """Test that an all-zero mapping is accepted."""
    result = EvalResult.from_mapping(EvalResult.failure("x").to_dict())
    assert result.failed


@pytest.mark.parametrize("bad", [0, 6, -1])
def test_eval_result_rejects_out_of_range(bad):
    """Test that out-of-range scores are rejected."""
    with pytest.raises(GradingFormatError):
        EvalResult.from_mapping(_scores(clarity=bad))


@pytest.mark.parametrize("bad", [4.5, "4", True, None])
def test_eval_result_rejects_non_integers(bad):
    """Test that non-integer scores are rejected."""
    with pytest.raises(GradingFormatError):
        EvalResult.from_mapping(_scores(accuracy=bad))


def test_eval_result_rejects_missing_fields():
    """Test that missing fields are rejected."""
    data = _scores()
    del data["overall_comments"]
    with pytest.raises(GradingFormatError, match="overall_comments"):
        EvalResult.from_mapping(data)


def test_eval_result_rejects_non_string_comments():
    """Test that non-string comments are rejected."""
    with pytest.raises(GradingFormatError):
        EvalResult.from_mapping(_scores(overall_comments=["fine"]))


def test_transcript_properties():
    """Test transcript convenience properties."""
    transcript = Transcript(prompt="hi")
    transcript.append({"role": "user", "content": "hi"})
    transcript.append({"role": "assistant", "content": "hello"})
    assert transcript.final_answer == "hello"
    assert transcript.complete
    assert not transcript.timed_out


def test_eval_config_requires_evals():
    """Test that a config needs at least one evaluation."""
    with pytest.raises(ConfigError):
        EvalConfig(model=ScriptedModel([]), evals=[])


def test_eval_config_rejects_duplicate_names():
    """Test that duplicate names are rejected."""
    evals = [EvalFunction("a", "first", _noop), EvalFunction("a", "second", _noop)]
    with pytest.raises(ConfigError, match="Duplicate"):
        EvalConfig(model=ScriptedModel([]), evals=evals)


def test_eval_config_rejects_empty_names():
    """Test that blank names are rejected."""
    with pytest.raises(ConfigError):
        EvalConfig(model=ScriptedModel([]), evals=[EvalFunction("  ", "blank", _noop)])


def test_eval_config_names_in_order():
    """Test that names keep declaration order."""
    evals = [EvalFunction(n, n, _noop) for n in ("b", "a", "c")]
    assert EvalConfig(model=ScriptedModel([]), evals=evals).names == ["b", "a", "c"]
