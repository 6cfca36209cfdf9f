import time
import logging
from typing import Any, Optional

logger = logging.getLogger("MultiTool.mcp.metrics")

DEFAULT_WARN_THRESHOLD_MS = 90000.0


class McpMetrics:
    """
    Tracks timing and payload size for a single MCP tool call.
    """
    def __init__(self, msg_id: Any, name: str):
        self.msg_id = msg_id
        self.name = name
        self.response_count = 0
        self.response_chars_total = 0
        self.saw_error = False
        self.tool_error = False
        self.started_monotonic = time.monotonic()

    def record_result(self, text: str, is_error: bool) -> None:
        self.response_count += 1
        self.response_chars_total += len(text)
        self.tool_error = self.tool_error or is_error

    def record_rpc_error(self) -> None:
        self.saw_error = True

    def get_outcome(self) -> str:
        if self.saw_error:
            return "error"
        if self.tool_error:
            return "tool_error"
        if self.response_count > 0:
            return "success"
        return "no_response"

    def elapsed_ms(self) -> float:
        return max(0.0, (time.monotonic() - self.started_monotonic) * 1000.0)

    def log_telemetry(
        self,
        remaining_budget_ms: Optional[float] = None,
        warn_threshold_ms: float = DEFAULT_WARN_THRESHOLD_MS,
    ) -> None:
        """Log normalized telemetry for the tool call."""
        elapsed_ms = self.elapsed_ms()
        remaining_str = "n/a" if remaining_budget_ms is None else f"{remaining_budget_ms:.1f}"

        log_method = logger.warning if elapsed_ms >= warn_threshold_ms else logger.info
        log_method(
            "Tool call telemetry: name=%s id=%r outcome=%s elapsed_ms=%.1f responses=%d "
            "response_chars_total=%d remaining_budget_ms=%s",
            self.name,
            self.msg_id,
            self.get_outcome(),
            elapsed_ms,
            self.response_count,
            self.response_chars_total,
            remaining_str,
        )
