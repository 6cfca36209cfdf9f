#!/usr/bin/env python3
"""
MultiTool MCP Wrapper
---------------------
Stdio entry point for MCP clients (Claude Desktop, etc.). Routes JSON-RPC
messages to the Obsidian, Brave, Kibela, Google Drive and Slack tools.
"""

import os
import sys
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from multitool.core.config import MultiToolConfig, get_config
from multitool.mcp.context import close_context
from multitool.mcp.handlers import (
    handle_call_tool,
    handle_initialize,
    handle_list_resource_templates,
    handle_list_resources,
    handle_list_tools,
    handle_read_resource,
)
from multitool.mcp.protocol import INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND
from multitool.mcp.server import McpServer
from multitool.mcp.state import _SESSION_STATE
from multitool.version import __version__

logger = logging.getLogger("MultiTool")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_SERVER: Optional[McpServer] = None
_SERVER_LOCK = threading.Lock()

# Request methods that require a completed initialize handshake.
_INITIALIZED_METHODS = ("tools/call", "resources/list", "resources/templates/list", "resources/read")


def configure_logging(config: MultiToolConfig) -> None:
    """Send logs to the configured file, or stderr for ``-``. stdout carries the protocol."""
    level = getattr(logging, config.server.log_level.upper(), logging.INFO)
    log_file = config.server.log_file
    if log_file == "-":
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
        return
    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(level=level, format=LOG_FORMAT, filename=str(log_path), filemode='a')


def get_server() -> McpServer:
    global _SERVER
    with _SERVER_LOCK:
        if _SERVER is None:
            _SERVER = McpServer(
                _dispatch_rpc_message,
                max_workers=get_config().server.dispatch_max_workers,
            )
        return _SERVER


def set_server(server: Optional[McpServer]) -> None:
    global _SERVER
    with _SERVER_LOCK:
        _SERVER = server


def _send_json_rpc_error(msg_id: Any, code: int, message: str) -> None:
    get_server().send_error(msg_id, code, message)


def _send_result(msg_id: Any, result: Dict[str, Any]) -> None:
    get_server().send_result(msg_id, result)


def _validate_initialized_rpc_params(msg_id: Any, method: str, params: Any) -> Optional[Dict[str, Any]]:
    """Validate initialized lifecycle and dict params for request methods."""
    if not _SESSION_STATE["initialized"]:
        if msg_id is not None:
            _send_json_rpc_error(
                msg_id,
                INVALID_REQUEST,
                "Server not initialized. Send initialize then notifications/initialized.",
            )
        return None
    if msg_id is None:
        logger.debug("Ignoring %s notification without id", method)
        return None
    validated = {} if params is None else params
    if not isinstance(validated, dict):
        _send_json_rpc_error(msg_id, INVALID_PARAMS, f"Invalid params: {method} params must be an object")
        return None
    return validated


def _dispatch_rpc_message(msg: Dict[str, Any]) -> None:
    """
    Handle a single parsed JSON-RPC message.

    Conformance notes:
    - Unknown request methods (with id) return -32601.
    - Unknown notifications (no id) are ignored.
    - notifications/initialized is only accepted after successful initialize.
    """
    msg_id = msg.get("id")
    method = msg.get("method")
    params = msg.get("params", {})

    if not isinstance(method, str):
        if msg_id is not None:
            _send_json_rpc_error(msg_id, INVALID_REQUEST, "Invalid Request: missing method")
        return

    if method == "initialize":
        if params is None:
            params = {}
        if not isinstance(params, dict):
            _send_json_rpc_error(msg_id, INVALID_PARAMS, "Invalid params: initialize params must be an object")
            return
        handle_initialize(msg_id, params, _send_json_rpc_error, _send_result)
        return

    if method == "notifications/initialized":
        if _SESSION_STATE["negotiated"]:
            _SESSION_STATE["initialized"] = True
            logger.info("Client initialized connection")
        else:
            logger.warning("Ignored notifications/initialized before successful initialize")
        return

    if method == "ping":
        if msg_id is not None:
            _send_result(msg_id, {})
        return

    if method == "tools/list":
        if _validate_initialized_rpc_params(msg_id, method, params) is None:
            return
        handle_list_tools(msg_id, _send_result)
        return

    if method in _INITIALIZED_METHODS:
        validated = _validate_initialized_rpc_params(msg_id, method, params)
        if validated is None:
            return
        if method == "tools/call":
            handle_call_tool(msg_id, validated, _send_json_rpc_error, _send_result)
        elif method == "resources/list":
            handle_list_resources(msg_id, _send_result)
        elif method == "resources/templates/list":
            handle_list_resource_templates(msg_id, _send_result)
        else:
            handle_read_resource(msg_id, validated, _send_json_rpc_error, _send_result)
        return

    if msg_id is not None:
        _send_json_rpc_error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")
    else:
        logger.debug("Ignoring unknown notification method: %s", method)


def _should_dispatch_in_background(msg: Dict[str, Any]) -> bool:
    if msg.get("method") == "tools/call":
        return get_config().server.background_tools_call
    return False


def main() -> None:
    config = get_config()
    configure_logging(config)
    logger.info("MultiTool MCP Wrapper %s started (pid=%d)", __version__, os.getpid())
    for warning in config.startup_warnings():
        logger.warning("Startup check: %s", warning)

    server = get_server()
    try:
        while True:
            try:
                msg = server.read_message(sys.stdin.buffer)
                if msg is None:
                    break
                if server.transport_closed.is_set():
                    break
                if _should_dispatch_in_background(msg):
                    server.submit_dispatch(msg)
                else:
                    server.dispatch_guarded(msg)
            except Exception as e:
                logger.error("Loop error: %s", e)
    finally:
        server.stop()
        close_context()
        logger.info("MultiTool MCP Wrapper stopped")


if __name__ == "__main__":
    main()
