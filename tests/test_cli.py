"""Tests for the command-line interface."""

import json

import pytest

from mcp_evals.cli import USAGE, main

from conftest import FIXTURES, MOCK_SERVER


@pytest.fixture(autouse=True)
def _quiet_env(monkeypatch):
    for name in ("OTEL_ENABLED", "MCP_EVALS_METRICS_PORT", "MCP_EVALS_CONCURRENCY"):
        monkeypatch.delenv(name, raising=False)


def test_missing_arguments(capsys):
    """Test that running without arguments prints usage and exits 1."""
    assert main([]) == 1
    assert USAGE in capsys.readouterr().err


def test_missing_server_argument(capsys):
    """Test that a missing server path prints usage and exits 1."""
    assert main([str(FIXTURES / "native_config.py")]) == 1
    assert USAGE in capsys.readouterr().err


def test_server_not_found(tmp_path, capsys):
    """Test that a nonexistent server file exits 1."""
    assert main([str(FIXTURES / "native_config.py"), str(tmp_path / "nope.py")]) == 1
    assert "Server not found" in capsys.readouterr().err


def test_invalid_config(tmp_path, capsys):
    """Test that an invalid config exits 1."""
    bad = tmp_path / "bad.yaml"
    bad.write_text("evals: []\n")
    assert main([str(bad), str(MOCK_SERVER)]) == 1
    assert "Invalid config" in capsys.readouterr().err


def test_runs_native_config(capsys):
    """Test a full run of a native config."""
    code = main([str(FIXTURES / "native_config.py"), str(MOCK_SERVER), "--log-level", "WARNING"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Evaluation Results:" in out
    assert out.index("add_numbers:") < out.index("broken_tool:")
    assert '"overall_comments": "add returned 5"' in out


def test_json_output(capsys):
    """Test the single-document JSON output."""
    code = main([
        str(FIXTURES / "native_config.py"),
        str(MOCK_SERVER),
        "--json",
        "--concurrency", "2",
        "--log-level", "WARNING",
    ])
    assert code == 0
    results = json.loads(capsys.readouterr().out)
    assert list(results) == ["add_numbers", "broken_tool"]
    assert results["add_numbers"]["accuracy"] == 5
    assert results["broken_tool"]["accuracy"] == 0
    assert results["broken_tool"]["overall_comments"].startswith("Tool error")


def test_missing_api_keys_is_invalid_config(monkeypatch, capsys):
    """Test that a YAML config naming models without API keys exits 1."""
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("mcp_evals.cli.load_dotenv", lambda *args, **kwargs: False)
    assert main([str(FIXTURES / "evals.yaml"), str(MOCK_SERVER)]) == 1
    assert "Invalid config" in capsys.readouterr().err
