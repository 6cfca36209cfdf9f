from multitool.core.types import FileEntry, FileListResult, FileReadResult, SearchReport

__all__ = ["FileEntry", "FileListResult", "FileReadResult", "SearchReport"]
