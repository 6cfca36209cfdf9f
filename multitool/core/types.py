"""
MultiTool Core Types
--------------------
Pydantic models shared by the vault adapter, the content search engine and
the MCP resource handlers.

Resource payloads are serialised with ``by_alias=True`` so the JSON keys stay
camelCase (``isDirectory``, ``currentPath``, ``fileInfo``).
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FileEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    is_directory: bool = Field(default=False, alias="isDirectory")
    size: int = 0
    modified: str


class FileListResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    files: List[FileEntry] = Field(default_factory=list)
    current_path: str = Field(default="", alias="currentPath")


class FileReadResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    file_info: FileEntry = Field(alias="fileInfo")


class CreateResult(BaseModel):
    """Outcome of a create call. ``created=False`` means the file already existed."""
    entry: Optional[FileEntry] = None
    created: bool = True
    path: str = ""


class SearchMatch(BaseModel):
    line: int
    text: str


class FileSearchResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_info: FileEntry = Field(alias="fileInfo")
    content: str
    matches: List[SearchMatch] = Field(default_factory=list)


class SearchReport(BaseModel):
    query: str
    current_path: str = ""
    results: List[FileSearchResult] = Field(default_factory=list)
    # Vault-relative paths whose read failed mid-search.
    failures: List[str] = Field(default_factory=list)
