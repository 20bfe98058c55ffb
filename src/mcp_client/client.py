"""MCP client helper: connect to the Coinbase MCP server and call its tools."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shlex
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from mcp.client.session import ClientSession
from mcp.client.sse import sse_client
from mcp.client.stdio import StdioServerParameters, stdio_client

from src.utils.telemetry import get_trace_id, span

logger = logging.getLogger(__name__)


class MCPToolClient:
    """Thin wrapper around an MCP client session for tool calls with timeout/retry.

    A fresh session (stdio subprocess or SSE connection) is opened per call, so
    the synchronous ``call_tool`` can be used from scripts and Streamlit reruns
    without keeping an event loop alive.
    """

    def __init__(
        self,
        server_cmd: Optional[str] = None,
        server_url: Optional[str] = None,
        server_headers: Optional[Dict[str, str]] = None,
        timeout_seconds: float = 15.0,
        retries: int = 1,
    ):
        self.server_cmd = server_cmd
        self.server_url = server_url
        self.server_headers = server_headers or {}
        self.timeout_seconds = timeout_seconds
        self.retries = max(retries, 1)

    @property
    def transport(self) -> str:
        return "sse" if self.server_url else "stdio"

    @asynccontextmanager
    async def _open_session(self) -> AsyncIterator[ClientSession]:
        if self.server_url:
            logger.info("MCP SSE connect, url=%s", self.server_url, extra={"trace_id": get_trace_id()})
            streams = sse_client(self.server_url, headers=self.server_headers)
        elif self.server_cmd:
            cmd_parts = shlex.split(self.server_cmd)
            if not cmd_parts:
                raise ValueError("MCP_SERVER_CMD is empty.")
            params = StdioServerParameters(
                command=cmd_parts[0], args=cmd_parts[1:], env=os.environ.copy(), cwd=os.getcwd()
            )
            logger.info("MCP stdio connect, cmd=%s", cmd_parts, extra={"trace_id": get_trace_id()})
            streams = stdio_client(params)
        else:
            raise RuntimeError("MCP_SERVER_CMD or MCP_SERVER_URL is not set; cannot call tools.")

        async with streams as (read_stream, write_stream):
            # ClientSession must run as a context manager to start the receive loop.
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                yield session

    @staticmethod
    def unpack(resp: Any) -> Any:
        """Collapse a CallToolResult into plain data: parsed JSON, text, or a list of blocks."""
        outputs: List[Any] = []
        for item in resp.content:
            if hasattr(item, "text"):
                payload: Any = item.text
                try:
                    payload = json.loads(payload)
                except ValueError:
                    pass
            elif hasattr(item, "data"):
                payload = item.data
            else:
                payload = item.model_dump()
            outputs.append(payload)
        if getattr(resp, "isError", False):
            raise RuntimeError(str(outputs[0] if len(outputs) == 1 else outputs))
        return outputs[0] if len(outputs) == 1 else outputs

    async def list_tools_async(self) -> List[str]:
        async with self._open_session() as session:
            resp = await session.list_tools()
            return [tool.name for tool in resp.tools]

    async def call_tool_async(self, name: str, **kwargs: Any) -> Any:
        """Call ``name``; errors are logged and raised so the caller can surface them."""
        async with self._open_session() as session:
            resp_tools = await session.list_tools()
            if name not in {tool.name for tool in resp_tools.tools}:
                raise ValueError(f"Tool {name} not found in MCP registry.")

            attempt = 0
            while True:
                attempt += 1
                try:
                    attrs = {"trace_id": get_trace_id(), "transport": self.transport, "attempt": attempt}
                    with span(f"tool_call:{name}", attrs):
                        logger.info("MCP call_tool start: %s args=%s attempt=%s", name, kwargs, attempt)
                        resp = await asyncio.wait_for(session.call_tool(name, kwargs), timeout=self.timeout_seconds)
                    break
                except Exception as exc:  # noqa: BLE001
                    logger.warning("MCP call_tool error attempt=%s name=%s err=%s", attempt, name, exc)
                    if attempt >= self.retries:
                        raise
        result = self.unpack(resp)
        logger.debug("MCP call_tool done: %s", name)
        return result

    def call_tool(self, name: str, **kwargs: Any) -> Any:
        """Synchronous wrapper; must not be called from inside a running event loop."""
        return asyncio.run(self.call_tool_async(name, **kwargs))

    def __call__(self, name: str, **kwargs: Any) -> Any:
        return self.call_tool(name, **kwargs)


def make_mcp_tool_caller() -> MCPToolClient:
    server_headers: Dict[str, str] = {}
    headers_env = os.getenv("MCP_SERVER_HEADERS")
    if headers_env:
        try:
            server_headers = json.loads(headers_env)
        except ValueError as exc:
            logger.warning("Failed to parse MCP_SERVER_HEADERS: %s", exc)
    return MCPToolClient(
        server_cmd=os.getenv("MCP_SERVER_CMD"),
        server_url=os.getenv("MCP_SERVER_URL"),
        server_headers=server_headers,
        timeout_seconds=float(os.getenv("TOOL_CALL_TIMEOUT", "15")),
        retries=int(os.getenv("TOOL_CALL_RETRIES", "1")),
    )
