"""
MultiTool: one stdio MCP server for a local Obsidian vault, Brave search,
Kibela, Google Drive and Slack.
"""

from multitool.core.errors import (
    AccessDenied,
    MultiToolError,
    NotAFile,
    NotFound,
    RateLimitExceeded,
    RemoteServiceError,
)
from multitool.version import __version__

__all__ = [
    "__version__",
    "MultiToolError",
    "AccessDenied",
    "NotFound",
    "NotAFile",
    "RateLimitExceeded",
    "RemoteServiceError",
]
