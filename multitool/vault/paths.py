"""
Vault path sandboxing.

Every caller-supplied path is joined onto the vault root and canonicalised
before use. Containment is checked on path segments of the canonical form,
so ``..`` traversal, sibling directories sharing a name prefix and symlinks
pointing outside the root are all rejected.
"""

import logging
from pathlib import Path
from typing import Union

from multitool.core.errors import AccessDenied

logger = logging.getLogger("MultiTool.vault.paths")


def normalize_relative_path(candidate: str) -> str:
    """Strip leading and trailing ``/``. ``""`` and ``"/"`` both mean the root."""
    if candidate is None:
        return ""
    return str(candidate).strip("/")


def canonical_root(root: Union[str, Path]) -> Path:
    return Path(root).expanduser().resolve()


def resolve_vault_path(root: Union[str, Path], candidate: str) -> Path:
    """
    Resolve *candidate* against *root* and return the canonical absolute path.

    Raises AccessDenied when the result is not the root or below it.
    """
    base = canonical_root(root)
    relative = normalize_relative_path(candidate)
    resolved = (base / relative).resolve(strict=False) if relative else base

    try:
        resolved.relative_to(base)
    except ValueError:
        exc = AccessDenied(root=base, candidate=candidate, resolved=resolved)
        logger.warning("Rejected vault path outside root: %s", exc.diagnostic())
        raise exc from None
    return resolved


def relative_to_root(root: Union[str, Path], path: Path) -> str:
    """Vault-relative POSIX path for display in listings; the root itself is ``""``."""
    rel = Path(path).relative_to(canonical_root(root))
    text = rel.as_posix()
    return "" if text == "." else text
