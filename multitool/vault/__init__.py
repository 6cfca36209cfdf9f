"""
Sandboxed access to a local Obsidian vault.
"""

from multitool.vault.cache import ViewCache
from multitool.vault.paths import normalize_relative_path, resolve_vault_path
from multitool.vault.search import search_content
from multitool.vault.store import VaultStore

__all__ = [
    "VaultStore",
    "ViewCache",
    "normalize_relative_path",
    "resolve_vault_path",
    "search_content",
]
