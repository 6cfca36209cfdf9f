"""
Sandboxed vault file access: listing, reading, creating and updating files
below a single configured root directory.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from multitool.core.errors import NotAFile, NotFound, ServiceNotConfigured
from multitool.core.formatting import iso_timestamp
from multitool.core.types import CreateResult, FileEntry, FileListResult, FileReadResult
from multitool.vault.cache import ViewCache, read_uri
from multitool.vault.paths import (
    canonical_root,
    normalize_relative_path,
    relative_to_root,
    resolve_vault_path,
)

logger = logging.getLogger("MultiTool.vault.store")


class VaultStore:
    """
    File operations confined to ``root``.

    A store built without a root stays usable as an object but every
    operation raises ServiceNotConfigured, so the vault tools report an
    error instead of the server refusing to start.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]],
        cache: Optional[ViewCache] = None,
        encoding: str = "utf-8",
    ):
        self._root: Optional[Path] = canonical_root(root) if root else None
        self.cache = cache
        self.encoding = encoding

    @property
    def root(self) -> Path:
        if self._root is None:
            raise ServiceNotConfigured("OBSIDIAN_VAULT_PATH environment variable is not set")
        return self._root

    @property
    def configured(self) -> bool:
        return self._root is not None

    def resolve(self, candidate: str) -> Path:
        return resolve_vault_path(self.root, candidate)

    def cache_key(self, file_path: str) -> str:
        """View cache key for *file_path*, built from its canonical location."""
        return read_uri(relative_to_root(self.root, self.resolve(file_path)))

    def _entry_for_file(self, path: Path) -> FileEntry:
        stats = path.stat()
        return FileEntry(
            name=path.name,
            path=relative_to_root(self.root, path),
            is_directory=False,
            size=stats.st_size,
            modified=iso_timestamp(stats.st_mtime),
        )

    def list(self, dir_path: str = "") -> FileListResult:
        """List the immediate children of *dir_path*, sorted by name."""
        target = self.resolve(dir_path)
        if not target.is_dir():
            raise NotFound(f"Directory not found: {normalize_relative_path(dir_path) or '/'}")

        listed_at = iso_timestamp()
        files = []
        for child in sorted(target.iterdir(), key=lambda p: p.name):
            try:
                if child.is_dir():
                    files.append(
                        FileEntry(
                            name=child.name,
                            path=relative_to_root(self.root, child),
                            is_directory=True,
                            size=0,
                            modified=listed_at,
                        )
                    )
                else:
                    files.append(self._entry_for_file(child))
            except FileNotFoundError:
                logger.debug("Entry vanished during listing: %s", child)
                continue

        return FileListResult(files=files, current_path=normalize_relative_path(dir_path))

    def read(self, file_path: str) -> FileReadResult:
        target = self.resolve(file_path)
        if not target.exists():
            raise NotFound(f"File not found: {normalize_relative_path(file_path)}")
        if not target.is_file():
            raise NotAFile("Not a file: Directory cannot be read as a file")

        content = target.read_text(encoding=self.encoding)
        entry = self._entry_for_file(target)
        logger.debug("Read %s (%d chars)", entry.path, len(content))
        return FileReadResult(content=content, file_info=entry)

    def create(self, file_path: str, content: str = "", overwrite: bool = False) -> CreateResult:
        """
        Create a file, making parent directories as needed.

        An existing file with ``overwrite=False`` is left untouched and
        reported with ``created=False``.
        """
        relative = normalize_relative_path(file_path)
        target = self.resolve(file_path)
        if not relative or target.is_dir():
            raise NotAFile(f"Cannot create file at directory path: {relative or '/'}")

        if target.exists() and not overwrite:
            logger.info("Create skipped, file already exists: %s", relative)
            return CreateResult(entry=None, created=False, path=relative)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding=self.encoding)
        self._invalidate(target)
        return CreateResult(entry=self._entry_for_file(target), created=True, path=relative)

    def update(self, file_path: str, content: str, append: bool = False) -> FileEntry:
        relative = normalize_relative_path(file_path)
        target = self.resolve(file_path)
        if not target.is_file():
            raise NotFound(f"File not found: {relative}")

        if append:
            existing = target.read_text(encoding=self.encoding)
            content = f"{existing}\n{content}"

        target.write_text(content, encoding=self.encoding)
        self._invalidate(target)
        return self._entry_for_file(target)

    def _invalidate(self, target: Path) -> None:
        if self.cache is not None:
            self.cache.invalidate(read_uri(relative_to_root(self.root, target)))
