"""
MCP server for GUI agent browser control over the Chrome DevTools Protocol.

This module provides the stdio entry point and protocol handling.
Tool dispatch is handled via registry pattern in server/registry.py.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from .config import BrowserConfig
from .http_client import HttpClientError
from .resources import ResourceNotFoundError, list_resources, read_resource
from .server.contract import initialize_result, select_protocol, tools_list
from .server.registry import ToolRegistry, create_default_registry
from .server.types import ToolResult
from .session_manager import SessionRegistry
from .tools.base import SmartToolError

logger = logging.getLogger("mcp.gui_browser")

__all__ = ["McpServer", "main"]


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    line = (json.dumps(payload, ensure_ascii=False) + "\n").encode()
    sys.stdout.buffer.write(line)
    sys.stdout.buffer.flush()


def _read_message() -> dict[str, Any] | None:
    """Read JSON-RPC message from stdin. Returns None at EOF; blank lines yield {}."""
    line = sys.stdin.buffer.readline()
    if not line:
        return None
    line = line.strip()
    if not line:
        return {}
    try:
        msg = json.loads(line.decode())
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("bad_frame error=%s", exc)
        return {}
    return msg if isinstance(msg, dict) else {}


class McpServer:
    """MCP server with registry-based tool dispatch."""

    def __init__(
        self,
        config: BrowserConfig | None = None,
        *,
        sessions: SessionRegistry | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.config = config or BrowserConfig.from_env()
        self.sessions = sessions or SessionRegistry()
        self.registry = registry or create_default_registry()

    @property
    def session(self):  # noqa: ANN201
        return self.sessions.get(self.config)

    def _reply(self, request_id: Any, result: dict[str, Any]) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": result})

    def _reply_error(self, request_id: Any, code: int, message: str) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}})

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        self._reply(request_id, initialize_result(select_protocol(requested)))

    def handle_list_tools(self, request_id: Any) -> None:
        self._reply(request_id, {"tools": tools_list()})

    def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        logger.info("tool=%s args=%s", name, arguments)
        try:
            if not name:
                return ToolResult.error("Missing tool name")
            if not self.registry.has(name):
                return ToolResult.error(f"Unknown tool: {name}", tool=name)
            return self.registry.dispatch(name, self.session, arguments)
        except SmartToolError as e:
            logger.info("tool_error tool=%s action=%s reason=%s", e.tool, e.action, e.reason)
            return ToolResult.error(e.reason, tool=e.tool, suggestion=e.suggestion, details=e.details)
        except HttpClientError as e:
            logger.info("http_error %s", str(e))
            return ToolResult.error(str(e), tool=name)
        except KeyError as e:
            logger.info("tool_bad_arguments tool=%s missing=%s", name, e)
            return ToolResult.error(f"Missing required argument: {e}", tool=name)
        except Exception as exc:
            logger.exception("tool_call_failed")
            return ToolResult.error(str(exc), tool=name)

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        result = self.call_tool(name, arguments)
        self._reply(request_id, {"content": result.to_content_list(), "isError": result.is_error})

    def handle_list_resources(self, request_id: Any) -> None:
        self._reply(request_id, {"resources": list_resources(self.session)})

    def handle_read_resource(self, request_id: Any, uri: str) -> None:
        try:
            content = read_resource(self.session, uri)
        except ResourceNotFoundError as e:
            self._reply_error(request_id, -32002, str(e))
            return
        self._reply(request_id, {"contents": [content.to_dict()]})

    def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "notifications/initialized":
            return
        elif method == "tools/list":
            self.handle_list_tools(request_id)
        elif method == "tools/call":
            self.handle_call_tool(request_id, params.get("name") or "", params.get("arguments") or {})
        elif method == "resources/list":
            self.handle_list_resources(request_id)
        elif method == "resources/read":
            self.handle_read_resource(request_id, str(params.get("uri") or ""))
        elif method == "ping":
            self._reply(request_id, {})
        else:
            self._reply_error(request_id, -32601, f"Method {method} not found")

    def shutdown(self) -> None:
        self.sessions.close_all()


def main() -> None:
    """Main entry point for MCP server."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    server = McpServer()
    try:
        while True:
            message = _read_message()
            if message is None:
                break
            server.dispatch(message)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
