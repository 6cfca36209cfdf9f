"""
Content search over the direct children of one vault directory.
"""

import logging
from pathlib import PurePosixPath
from typing import List

from multitool.core.errors import VaultError
from multitool.core.formatting import format_file_size, truncate
from multitool.core.types import FileEntry, FileListResult, FileSearchResult, SearchMatch, SearchReport
from multitool.vault.store import VaultStore

logger = logging.getLogger("MultiTool.vault.search")

SEARCHABLE_EXTENSIONS = (".md", ".txt", ".csv", ".json", ".yaml", ".yml")
MAX_MATCHES_PER_FILE = 5
PREVIEW_MAX_CHARS = 200
MATCH_LINE_DISPLAY_CHARS = 100


def is_searchable(entry: FileEntry) -> bool:
    if entry.is_directory:
        return False
    return PurePosixPath(entry.name).suffix.lower() in SEARCHABLE_EXTENSIONS


def find_matching_lines(content: str, query: str, limit: int = MAX_MATCHES_PER_FILE) -> List[SearchMatch]:
    needle = query.lower()
    matches: List[SearchMatch] = []
    for index, line in enumerate(content.split("\n"), start=1):
        if needle in line.lower():
            matches.append(SearchMatch(line=index, text=line))
            if len(matches) >= limit:
                break
    return matches


def search_content(store: VaultStore, start_path: str, query: str) -> SearchReport:
    """
    Case-insensitive substring search across searchable files in *start_path*.

    Files are read one at a time in listing order. A file that fails to read
    is logged and recorded in ``failures``; the rest of the search goes on.
    """
    listing = store.list(start_path)
    candidates = [entry for entry in listing.files if is_searchable(entry)]
    needle = query.lower()

    report = SearchReport(query=query, current_path=listing.current_path)
    for entry in candidates:
        try:
            result = store.read(entry.path)
        except (OSError, UnicodeDecodeError, VaultError) as exc:
            logger.warning("Error searching file %s: %s", entry.path, exc)
            report.failures.append(entry.path)
            continue

        content = result.content
        if needle not in content.lower():
            continue

        report.results.append(
            FileSearchResult(
                file_info=result.file_info,
                content=truncate(content, PREVIEW_MAX_CHARS),
                matches=find_matching_lines(content, query),
            )
        )

    logger.debug(
        "Content search for %r in %r: %d candidates, %d matches, %d failures",
        query,
        listing.current_path,
        len(candidates),
        len(report.results),
        len(report.failures),
    )
    return report


def filter_by_name(listing: FileListResult, query: str) -> FileListResult:
    """Keep entries whose name contains *query* (case-sensitive); blank query keeps all."""
    if not query or not query.strip():
        return listing
    return FileListResult(
        files=[entry for entry in listing.files if query in entry.name],
        current_path=listing.current_path,
    )


def format_listing(listing: FileListResult) -> str:
    lines = [f"Files in {listing.current_path or 'root'} directory:", ""]
    if not listing.files:
        lines.append("No files found.")
        return "\n".join(lines)
    for entry in listing.files:
        if entry.is_directory:
            lines.append(f"[DIR] {entry.name}")
        else:
            lines.append(f"[FILE] {entry.name} ({format_file_size(entry.size)})")
    return "\n".join(lines) + "\n"


def format_search_report(report: SearchReport) -> str:
    text = f'Search results for "{report.query}" in {report.current_path or "root"}:\n\n'
    if not report.results:
        text += "No matches found in any files."
    else:
        for result in report.results:
            text += f"{result.file_info.name} ({format_file_size(result.file_info.size)})\n"
            if result.matches:
                text += "Matching lines:\n"
                for match in result.matches:
                    text += f"  Line {match.line}: {truncate(match.text, MATCH_LINE_DISPLAY_CHARS)}\n"
            text += "\n"
        text += f'Found {len(report.results)} files containing "{report.query}".\n'

    if report.failures:
        text += f"\nSkipped {len(report.failures)} unreadable file(s): {', '.join(report.failures)}\n"
    return text
