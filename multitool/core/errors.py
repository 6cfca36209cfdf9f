"""
MultiTool exceptions.

Every adapter raises one of these; the MCP tool boundary converts them into
text results with ``isError`` set, so none of them reach the host transport
unhandled.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class MultiToolError(RuntimeError):
    """Base class for all adapter errors."""


class VaultError(MultiToolError):
    """Base class for sandboxed vault errors."""


class AccessDenied(VaultError):
    """Raised when a caller-supplied path resolves outside the vault root.

    The public message never contains the root. The diagnostic attributes are
    meant for log lines only.
    """

    PUBLIC_MESSAGE = "Access denied: path outside of allowed directory"

    def __init__(
        self,
        *,
        root: Optional[Path] = None,
        candidate: Optional[str] = None,
        resolved: Optional[Path] = None,
    ) -> None:
        self.root = root
        self.candidate = candidate
        self.resolved = resolved
        super().__init__(self.PUBLIC_MESSAGE)

    def diagnostic(self) -> str:
        return (
            f"root={self.root} candidate={self.candidate!r} resolved={self.resolved}"
        )


class NotFound(VaultError):
    """Raised when the target path does not exist or has the wrong type."""


class NotAFile(VaultError):
    """Raised when a file operation targets a directory."""


class RateLimitExceeded(MultiToolError):
    """Raised when a remote call budget is exhausted."""

    def __init__(self, detail: str, *, retry_after_ms: Optional[int] = None) -> None:
        self.retry_after_ms = retry_after_ms
        super().__init__(detail)


class RemoteServiceError(MultiToolError):
    """Raised when a remote API returns a non-success status or error payload."""

    def __init__(
        self,
        detail: str,
        *,
        service: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        self.payload = payload
        super().__init__(detail)


class OperationTimedOut(MultiToolError):
    """Raised when an operation runs past its per-call deadline."""


class ServiceNotConfigured(MultiToolError):
    """Raised when a tool is invoked for an adapter that has no credentials."""
