import json
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from multitool.core.errors import MultiToolError
from multitool.vault.cache import list_uri, read_uri
from multitool.vault.paths import normalize_relative_path, relative_to_root
from multitool.version import __version__

from .context import ToolContext, get_context
from .definitions import (
    CLOSED_WORLD_TOOLS,
    DESTRUCTIVE_TOOLS,
    IDEMPOTENT_TOOLS,
    JSON_SCHEMA_2020_12,
    READ_ONLY_TOOLS,
    RESOURCE_TEMPLATES,
    TOOLS_SCHEMAS,
)
from .metrics import McpMetrics
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    RESOURCE_NOT_FOUND,
    SERVER_NAME,
    negotiate_protocol_version,
)
from .state import _SESSION_STATE
from .tools import TOOL_DISPATCH, error_text, view_file
from .utils import (
    build_initialize_instructions,
    get_tool_call_deadline,
    public_tool_error_message,
    remaining_deadline_ms,
    truncate_tool_text,
)

logger = logging.getLogger("MultiTool.mcp.handlers")

_RESOURCE_URI_RE = re.compile(r"^obsidian://(.*)/(list|read)$")


def handle_initialize(msg_id: Any, params: Dict[str, Any], send_error_fn, send_result_fn, startup_warnings: Optional[List[str]] = None):
    """Handle protocol negotiation and server initialization."""
    if not isinstance(params, dict):
        send_error_fn(msg_id, INVALID_PARAMS, "initialize params must be an object")
        return

    requested_version = params.get("protocolVersion")
    negotiated_version = negotiate_protocol_version(requested_version)
    if not negotiated_version:
        send_error_fn(msg_id, INVALID_PARAMS, f"Unsupported protocol version {requested_version}")
        return

    _SESSION_STATE["negotiated"] = True
    _SESSION_STATE["protocol_version"] = negotiated_version
    _SESSION_STATE["client_capabilities"] = params.get("capabilities", {})
    _SESSION_STATE["client_info"] = params.get("clientInfo", {})

    if startup_warnings is None:
        startup_warnings = get_context().config.startup_warnings()

    send_result_fn(msg_id, {
        "protocolVersion": negotiated_version,
        "capabilities": {
            "tools": {"listChanged": False},
            "resources": {},
        },
        "serverInfo": {"name": SERVER_NAME, "version": __version__},
        "instructions": build_initialize_instructions(startup_warnings),
    })


def handle_list_tools(msg_id: Any, send_result_fn):
    """List available tools with schemas and hints."""
    tools_list = []
    for schema_def in TOOLS_SCHEMAS:
        name = schema_def["name"]
        input_schema = dict(schema_def["inputSchema"])
        input_schema.setdefault("$schema", JSON_SCHEMA_2020_12)
        read_only = name in READ_ONLY_TOOLS
        tools_list.append({
            "name": name,
            "description": schema_def["description"],
            "inputSchema": input_schema,
            "annotations": {
                "readOnlyHint": read_only,
                "destructiveHint": name in DESTRUCTIVE_TOOLS,
                "idempotentHint": name in IDEMPOTENT_TOOLS or read_only,
                "openWorldHint": name not in CLOSED_WORLD_TOOLS,
            },
        })
    send_result_fn(msg_id, {"tools": tools_list})


def handle_call_tool(msg_id: Any, params: Dict[str, Any], send_error_fn, send_result_fn, context: Optional[ToolContext] = None):
    """Execute a single tool call and reply with a text content block."""
    if not isinstance(params, dict):
        send_error_fn(msg_id, INVALID_PARAMS, "Invalid params: tools/call params must be an object")
        return
    name = params.get("name")
    if not isinstance(name, str) or not name:
        send_error_fn(msg_id, INVALID_PARAMS, "Invalid params: tools/call requires non-empty string name")
        return
    metrics = McpMetrics(msg_id, name)
    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        metrics.record_rpc_error()
        metrics.log_telemetry()
        send_error_fn(msg_id, INVALID_PARAMS, "Invalid params: arguments must be an object")
        return

    tool_fn = TOOL_DISPATCH.get(name)
    if tool_fn is None:
        metrics.record_rpc_error()
        metrics.log_telemetry()
        send_error_fn(msg_id, METHOD_NOT_FOUND, f"Method not found: {name}")
        return

    ctx = context or get_context()
    deadline = get_tool_call_deadline(ctx.config.server.tool_call_timeout_sec)
    try:
        try:
            text = tool_fn(ctx, arguments, deadline)
            is_error = False
        except (MultiToolError, ValueError) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            text = error_text(name, public_tool_error_message(exc))
            is_error = True
        except Exception as exc:
            logger.exception("Tool execution failed: %s", name)
            text = error_text(name, public_tool_error_message(exc))
            is_error = True

        text = truncate_tool_text(text, name, ctx.config.server.tool_response_max_chars)
        metrics.record_result(text, is_error)
        send_result_fn(msg_id, {
            "content": [{"type": "text", "text": text}],
            "isError": is_error,
        })
    finally:
        metrics.log_telemetry(remaining_budget_ms=remaining_deadline_ms(deadline))


def handle_list_resources(msg_id: Any, send_result_fn):
    # Vault files are exposed through templates only.
    send_result_fn(msg_id, {"resources": []})


def handle_list_resource_templates(msg_id: Any, send_result_fn):
    send_result_fn(msg_id, {"resourceTemplates": [dict(t) for t in RESOURCE_TEMPLATES]})


def parse_resource_uri(uri: str):
    """Split ``obsidian://{path}/{list|read}`` into (path, action), or None."""
    match = _RESOURCE_URI_RE.match(uri)
    if match is None:
        return None
    return normalize_relative_path(unquote(match.group(1))), match.group(2)


def handle_read_resource(msg_id: Any, params: Dict[str, Any], send_error_fn, send_result_fn, context: Optional[ToolContext] = None):
    """Serve ``obsidian://.../list`` and ``obsidian://.../read`` as JSON."""
    uri = params.get("uri") if isinstance(params, dict) else None
    if not isinstance(uri, str) or not uri:
        send_error_fn(msg_id, INVALID_PARAMS, "Invalid params: resources/read requires a uri")
        return

    parsed = parse_resource_uri(uri)
    if parsed is None:
        send_error_fn(msg_id, RESOURCE_NOT_FOUND, f"Resource not found: {uri}")
        return
    path, action = parsed

    ctx = context or get_context()
    try:
        if action == "list":
            payload = ctx.vault.list(path).model_dump(by_alias=True)
        else:
            payload = view_file(ctx, path).model_dump(by_alias=True)
        canonical_path = relative_to_root(ctx.vault.root, ctx.vault.resolve(path))
    except (MultiToolError, OSError, ValueError) as exc:
        prefix = "Failed to list files" if action == "list" else "Failed to read file"
        logger.warning("%s for %s: %s", prefix, uri, exc)
        send_error_fn(msg_id, INTERNAL_ERROR, f"{prefix}: {public_tool_error_message(exc)}")
        return

    canonical = list_uri(canonical_path) if action == "list" else read_uri(canonical_path)
    send_result_fn(msg_id, {
        "contents": [{
            "uri": canonical,
            "mimeType": "application/json",
            "text": json.dumps(payload, ensure_ascii=False, indent=2),
        }]
    })
