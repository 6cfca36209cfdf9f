import os
import re
import time
import logging
from typing import List, Optional

logger = logging.getLogger("MultiTool.mcp.utils")

DEFAULT_TOOL_RESPONSE_MAX_CHARS = 32768
DEFAULT_TOOL_CALL_TIMEOUT_SEC = 110.0
TRUNCATION_SUFFIX = "\n\n[Response truncated due to size limits]"

_IP_RE = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")
_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
_SLACK_TOKEN_RE = re.compile(r"\bxox[abposr]-[A-Za-z0-9-]+")


def truncate_tool_text(text: str, name: str, max_chars: Optional[int] = None) -> str:
    """Apply the global length limit to tool responses."""
    if max_chars is None:
        try:
            max_chars = int(os.environ.get("MULTITOOL_MCP_TOOL_RESPONSE_MAX_CHARS", str(DEFAULT_TOOL_RESPONSE_MAX_CHARS)))
        except ValueError:
            max_chars = DEFAULT_TOOL_RESPONSE_MAX_CHARS
    if len(text) > max_chars:
        logger.info("Truncating response for tool '%s' (%d -> %d chars)", name, len(text), max_chars)
        cutoff = max(0, max_chars - len(TRUNCATION_SUFFIX))
        return text[:cutoff] + TRUNCATION_SUFFIX
    return text


def public_tool_error_message(error: Exception) -> str:
    """Sanitize error messages for public tool output."""
    msg = str(error)
    msg = _IP_RE.sub("[REDACTED_IP]", msg)
    msg = _BEARER_RE.sub(r"\1[REDACTED]", msg)
    msg = _SLACK_TOKEN_RE.sub("[REDACTED_TOKEN]", msg)
    return msg


def get_tool_call_deadline(timeout_sec: Optional[float] = None) -> float:
    """Absolute ``time.monotonic()`` deadline for a tool call starting now."""
    if timeout_sec is None:
        raw = os.environ.get("MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC", str(DEFAULT_TOOL_CALL_TIMEOUT_SEC))
        try:
            timeout_sec = float(raw)
        except ValueError:
            timeout_sec = DEFAULT_TOOL_CALL_TIMEOUT_SEC
        if timeout_sec <= 0:
            timeout_sec = DEFAULT_TOOL_CALL_TIMEOUT_SEC
    return time.monotonic() + timeout_sec


def remaining_deadline_ms(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(0.0, (deadline - time.monotonic()) * 1000.0)


def build_initialize_instructions(startup_warnings: Optional[List[str]] = None) -> str:
    """Build a set of instructions for the client during initialization."""
    base_instructions = (
        "MultiTool MCP server. Browse and edit the local Obsidian vault, search the web with Brave, "
        "read Kibela notes and Google Drive files, and work with Slack channels."
    )
    if not startup_warnings:
        return base_instructions
    bullet_list = "\n".join(f"- {warning}" for warning in startup_warnings)
    return f"{base_instructions}\n\nStartup checks:\n{bullet_list}"
