"""FastMCP tool server used by the test suite.

Run over stdio: ``python tests/fixtures/mock_server.py``.
"""

import asyncio
import os
from typing import Any, Dict, Literal

from fastmcp import FastMCP

mcp = FastMCP("mcp-evals test server")

TIMEOUT_SLEEP_S = float(os.getenv("MOCK_SERVER_TIMEOUT_SLEEP_S", "6"))


@mcp.tool()
async def test_tool(
    query: str,
    scenario: Literal["success", "partial", "error", "timeout"] = "success",
) -> Dict[str, Any]:
    """Answer a query, optionally simulating a failure scenario."""
    if scenario == "error":
        raise ValueError(f"Simulated failure for query: {query}")
    if scenario == "timeout":
        await asyncio.sleep(TIMEOUT_SLEEP_S)
        return {"status": "late", "result": f"Late response for: {query}"}
    if scenario == "partial":
        return {"status": "partial", "result": f"Partial response for: {query}"}
    return {"status": "success", "result": f"Response for: {query}"}


@mcp.tool()
def math_tool(operation: Literal["add", "subtract", "multiply", "divide"], a: float, b: float) -> float:
    """Perform basic arithmetic."""
    if operation == "add":
        return a + b
    if operation == "subtract":
        return a - b
    if operation == "multiply":
        return a * b
    if b == 0:
        raise ValueError("Division by zero")
    return a / b


@mcp.tool()
def add(a: int, b: int) -> int:
    """Add two integers."""
    return a + b


@mcp.tool()
def multiply(a: int, b: int) -> int:
    """Multiply two integers."""
    return a * b


if __name__ == "__main__":
    mcp.run(transport="stdio")
