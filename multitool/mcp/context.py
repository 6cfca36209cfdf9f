"""
Process-wide adapter instances shared by every tool and resource handler.
"""

import logging
import threading
from typing import Optional

from multitool.core.config import MultiToolConfig, get_config
from multitool.services.brave import BraveSearchClient
from multitool.services.gdrive import GDriveClient
from multitool.services.kibela import KibelaClient
from multitool.services.slack import SlackClient
from multitool.vault.cache import ViewCache
from multitool.vault.store import VaultStore

logger = logging.getLogger("MultiTool.mcp.context")


class ToolContext:
    def __init__(
        self,
        config: MultiToolConfig,
        vault: Optional[VaultStore] = None,
        brave: Optional[BraveSearchClient] = None,
        kibela: Optional[KibelaClient] = None,
        gdrive: Optional[GDriveClient] = None,
        slack: Optional[SlackClient] = None,
    ):
        self.config = config
        timeout = config.server.http_timeout_sec
        if vault is None:
            vault = VaultStore(config.vault.path or None, cache=ViewCache(config.vault.view_cache_size))
        self.vault = vault
        self.brave = brave or BraveSearchClient(config.brave, timeout=timeout)
        self.kibela = kibela or KibelaClient(config.kibela, timeout=timeout)
        self.gdrive = gdrive or GDriveClient(config.gdrive)
        self.slack = slack or SlackClient(config.slack, timeout=timeout)

    @property
    def cache(self) -> Optional[ViewCache]:
        return self.vault.cache

    def close(self) -> None:
        """Release HTTP sessions and log search budget usage."""
        budget = self.brave.limiter.snapshot()
        logger.info("Brave search usage for %s: %d calls", budget.month_key, budget.per_month_count)
        for client in (self.brave, self.kibela, self.slack):
            client.http.close()


_CONTEXT: Optional[ToolContext] = None
_CONTEXT_LOCK = threading.Lock()


def get_context() -> ToolContext:
    global _CONTEXT
    with _CONTEXT_LOCK:
        if _CONTEXT is None:
            _CONTEXT = ToolContext(get_config())
            logger.info("Adapters: %s", _CONTEXT.config.adapter_status())
        return _CONTEXT


def set_context(context: Optional[ToolContext]) -> None:
    global _CONTEXT
    with _CONTEXT_LOCK:
        _CONTEXT = context


def close_context() -> None:
    global _CONTEXT
    with _CONTEXT_LOCK:
        if _CONTEXT is not None:
            _CONTEXT.close()
            _CONTEXT = None
