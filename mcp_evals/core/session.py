"""Tool-server session over a local stdio subprocess.

A session owns one MCP server subprocess for the lifetime of a single
evaluation attempt. It performs the protocol handshake, discovers the tool
catalog and invokes tools. Failures surface as typed errors; nothing here is
retried.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.shared.exceptions import McpError

from .types import JSON, ToolCatalogEntry, ToolResult
from ..observability.instrumentation import ToolCallInstrumentation, ToolRegistration
from ..utils.constants import DEFAULT_STARTUP_TIMEOUT_S
from ..utils.exceptions import (
    ProtocolError,
    ServerStartFailure,
    SessionError,
    ToolExecutionError,
    ToolNotFound,
)

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream)


@dataclass
class ServerSpec:
    """How to launch a tool server subprocess."""
    command: str
    args: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[str] = None
    startup_timeout_s: float = DEFAULT_STARTUP_TIMEOUT_S

    @classmethod
    def from_path(cls, path: str | Path, **kwargs: Any) -> "ServerSpec":
        """Build a spec for a server entry point, choosing the launcher by extension.

        ``.py`` runs under the current interpreter, ``.js``/``.mjs``/``.cjs``
        under node, ``.ts`` under ``npx tsx``; anything else is executed directly.
        """
        entry = str(Path(path).expanduser().resolve())
        suffix = Path(entry).suffix.lower()
        if suffix == ".py":
            return cls(command=sys.executable, args=[entry], **kwargs)
        if suffix in (".js", ".mjs", ".cjs"):
            return cls(command="node", args=[entry], **kwargs)
        if suffix == ".ts":
            return cls(command="npx", args=["tsx", entry], **kwargs)
        return cls(command=entry, **kwargs)

    @property
    def display(self) -> str:
        return " ".join([self.command, *self.args])

    def to_parameters(self) -> StdioServerParameters:
        env = None
        if self.env:
            env = {**get_default_environment(), **self.env}
        return StdioServerParameters(command=self.command, args=list(self.args), env=env, cwd=self.cwd)


def _text_from_content(content: List[Any]) -> str:
    """Join the text blocks of a tool result."""
    return "\n".join(item.text for item in content if getattr(item, "text", None) is not None)


class ToolServerSession:
    """Connection to one tool-server subprocess."""

    def __init__(
        self,
        spec: ServerSpec,
        instrumentation: Optional[ToolCallInstrumentation] = None,
    ):
        """Initialize a closed session.

        Args:
            spec: How to launch the server
            instrumentation: Optional wrapper applied to every tool handler once,
                when the catalog is discovered
        """
        self.spec = spec
        self.instrumentation = instrumentation
        self._exit_stack: Optional[AsyncExitStack] = None
        self._client: Optional[ClientSession] = None
        self._catalog: Optional[List[ToolCatalogEntry]] = None
        self._registry: Dict[str, ToolRegistration] = {}
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._closed

    async def open(self) -> "ToolServerSession":
        """Launch the subprocess and perform the protocol handshake.

        Raises:
            ServerStartFailure: If the process cannot be launched or the handshake fails
        """
        if self._closed or self._exit_stack is not None:
            raise SessionError("Session has already been opened")

        self._exit_stack = AsyncExitStack()
        logger.debug("Starting tool server: %s", self.spec.display)
        try:
            read, write = await self._exit_stack.enter_async_context(
                stdio_client(self.spec.to_parameters())
            )
            client = await self._exit_stack.enter_async_context(ClientSession(read, write))
            async with asyncio.timeout(self.spec.startup_timeout_s):
                await client.initialize()
        except BaseException as e:
            await self.close()
            if isinstance(e, TimeoutError):
                raise ServerStartFailure(
                    self.spec.display, f"handshake timed out after {self.spec.startup_timeout_s}s", e
                ) from e
            if isinstance(e, Exception):
                raise ServerStartFailure(self.spec.display, str(e) or type(e).__name__, e) from e
            raise

        self._client = client
        logger.info("Tool server started: %s", self.spec.display)
        return self

    async def close(self) -> None:
        """Release the transport and subprocess. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        exit_stack, self._exit_stack = self._exit_stack, None
        self._client = None
        if exit_stack is None:
            return
        try:
            await exit_stack.aclose()
        except Exception as e:
            logger.warning("Error while closing tool server %s: %s", self.spec.display, e)
        logger.debug("Tool server closed: %s", self.spec.display)

    async def __aenter__(self) -> "ToolServerSession":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_client(self) -> ClientSession:
        if self._client is None or self._closed:
            raise SessionError("Session is not open")
        return self._client

    async def list_tools(self) -> List[ToolCatalogEntry]:
        """Discover the server's tool catalog (cached after the first call)."""
        if self._catalog is not None:
            return list(self._catalog)

        client = self._require_client()
        try:
            response = await client.list_tools()
        except McpError as e:
            raise ProtocolError(f"tools/list failed: {e.error.message}") from e
        except _TRANSPORT_ERRORS as e:
            raise ProtocolError("Connection to tool server closed") from e

        catalog = [
            ToolCatalogEntry(
                name=tool.name,
                description=tool.description or "",
                input_schema=dict(tool.inputSchema or {}),
            )
            for tool in (response.tools or [])
        ]
        self._catalog = catalog
        self._registry = {entry.name: self._register(entry) for entry in catalog}
        logger.debug("Discovered %d tools: %s", len(catalog), [t.name for t in catalog])
        return list(catalog)

    def _register(self, entry: ToolCatalogEntry) -> ToolRegistration:
        registration = ToolRegistration(
            name=entry.name,
            description=entry.description,
            input_schema=entry.input_schema,
            handler=partial(self._invoke, entry.name),
        )
        if self.instrumentation is not None:
            registration = self.instrumentation.wrap(registration)
        return registration

    async def call_tool(self, name: str, arguments: Optional[JSON] = None) -> ToolResult:
        """Invoke a tool by name.

        Raises:
            ToolNotFound: If the tool is not in the catalog
            ToolExecutionError: If the server reports the call as failed
            ProtocolError: If the transport breaks or a message is malformed
        """
        self._require_client()
        if self._catalog is None:
            await self.list_tools()

        registration = self._registry.get(name)
        if registration is None:
            raise ToolNotFound(name, list(self._registry))
        return await registration.handler(dict(arguments or {}))

    async def _invoke(self, name: str, arguments: JSON) -> ToolResult:
        client = self._require_client()
        logger.debug("Calling tool %s with %s", name, arguments)
        try:
            result = await client.call_tool(name, arguments)
        except McpError as e:
            raise ToolExecutionError(name, e.error.message, e) from e
        except _TRANSPORT_ERRORS as e:
            raise ProtocolError(f"Connection to tool server closed during '{name}'") from e

        text = _text_from_content(result.content or [])
        if result.isError:
            raise ToolExecutionError(name, text or "tool reported an error")

        return ToolResult(
            content=text,
            raw=[item.model_dump(mode="json", exclude_none=True) for item in (result.content or [])],
            structured=getattr(result, "structuredContent", None),
        )


@asynccontextmanager
async def open_session(
    spec: ServerSpec,
    instrumentation: Optional[ToolCallInstrumentation] = None,
) -> AsyncIterator[ToolServerSession]:
    """Open a session and close it on every exit path."""
    session = ToolServerSession(spec, instrumentation=instrumentation)
    await session.open()
    try:
        yield session
    finally:
        await session.close()
