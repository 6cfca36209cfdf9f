import time

import pytest

from multitool.core.errors import AccessDenied
from multitool.core.formatting import format_file_size, iso_timestamp, strip_html, truncate
from multitool.mcp.metrics import McpMetrics
from multitool.mcp.tools import (
    ERROR_PREFIXES,
    TOOL_DISPATCH,
    ToolArgumentError,
    _opt_bool,
    _opt_int,
    _require_str,
    error_text,
)
from multitool.mcp.utils import (
    TRUNCATION_SUFFIX,
    build_initialize_instructions,
    get_tool_call_deadline,
    public_tool_error_message,
    truncate_tool_text,
)


def test_public_error_message_redacts_secrets():
    err = RuntimeError("failed at 10.0.0.12 with Bearer abc.def and xoxb-123-456")
    msg = public_tool_error_message(err)
    assert "10.0.0.12" not in msg
    assert "abc.def" not in msg
    assert "xoxb-123-456" not in msg
    assert "[REDACTED_IP]" in msg


def test_access_denied_message_has_no_root(tmp_path):
    err = AccessDenied(root=tmp_path, candidate="../x", resolved=tmp_path.parent / "x")
    assert str(tmp_path) not in public_tool_error_message(err)
    assert str(tmp_path) in err.diagnostic()


def test_truncate_tool_text():
    assert truncate_tool_text("short", "t", max_chars=100) == "short"
    out = truncate_tool_text("x" * 500, "t", max_chars=100)
    assert len(out) == 100
    assert out.endswith(TRUNCATION_SUFFIX)


def test_truncate_tool_text_reads_env(monkeypatch):
    monkeypatch.setenv("MULTITOOL_MCP_TOOL_RESPONSE_MAX_CHARS", "80")
    assert len(truncate_tool_text("y" * 200, "t")) == 80


def test_deadline_env_fallback(monkeypatch):
    monkeypatch.setenv("MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC", "garbage")
    remaining = get_tool_call_deadline() - time.monotonic()
    assert 100 < remaining <= 110


def test_initialize_instructions():
    assert "Startup checks" not in build_initialize_instructions([])
    assert "- vault missing" in build_initialize_instructions(["vault missing"])


def test_argument_helpers():
    assert _require_str({"p": "a"}, "p") == "a"
    with pytest.raises(ToolArgumentError):
        _require_str({"p": "  "}, "p")
    assert _opt_int({}, "n", 5) == 5
    assert _opt_int({"n": 3.0}, "n", 5) == 3
    with pytest.raises(ToolArgumentError):
        _opt_int({"n": True}, "n", 5)
    with pytest.raises(ToolArgumentError):
        _opt_bool({"b": "yes"}, "b")


def test_error_text_prefixes():
    assert error_text("obsidian-create", "boom") == "Error creating file: boom"
    assert error_text("slack_get_unreplied_mentions", "boom") == "Error retrieving unreplied mentions: boom"
    assert error_text("brave_web_search", "boom") == "Error performing web search: boom"
    assert error_text("unknown-tool", "boom") == "Error: boom"


def test_every_tool_has_an_error_prefix():
    assert set(ERROR_PREFIXES) == set(TOOL_DISPATCH)


def test_metrics_outcome():
    metrics = McpMetrics(1, "obsidian-view")
    assert metrics.get_outcome() == "no_response"
    metrics.record_result("abc", is_error=True)
    assert metrics.get_outcome() == "tool_error"
    metrics.record_rpc_error()
    assert metrics.get_outcome() == "error"
    assert metrics.response_chars_total == 3


def test_formatting_helpers():
    assert format_file_size(512) == "512 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.0 MB"
    assert truncate("abcdef", 3) == "abc..."
    assert iso_timestamp(0) == "1970-01-01T00:00:00.000Z"
    assert strip_html("<p>a&nbsp;b</p>") == "a b"
