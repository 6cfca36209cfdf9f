"""
Kibela GraphQL client.

Queries are sent as ``{"query": ..., "variables": ...}`` to
``https://<team>.kibe.la/api/v1``. Kibela reports budget problems as GraphQL
errors with an ``extensions.code``; those are mapped to RateLimitExceeded or
RemoteServiceError before any data is formatted.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from multitool.core.config import KibelaConfig
from multitool.core.errors import RateLimitExceeded, RemoteServiceError, ServiceNotConfigured
from multitool.core.formatting import display_time, strip_html, truncate
from multitool.services.http import HttpClient

logger = logging.getLogger("MultiTool.services.kibela")

MIN_LIMIT = 1
MAX_LIMIT = 20
PREVIEW_CHARS = 100
CONTEXT_BEFORE = 40
CONTEXT_AFTER = 60

_NOTE_URL_RE = re.compile(r"/notes/(\d+)")
_NUMERIC_RE = re.compile(r"^\d+$")

SEARCH_QUERY = """
query SearchNotes($query: String!, $first: Int!) {
  search(query: $query, first: $first) {
    edges {
      node {
        __typename
        title
        contentUpdatedAt
        contentSummaryHtml
        url
        author { id realName }
      }
    }
  }
  budget { cost }
}
"""

CONTENT_SEARCH_QUERY = """
query ContentSearch($query: String!, $first: Int!) {
  search(query: $query, first: $first, sortBy: RELEVANT) {
    edges {
      node {
        __typename
        title
        contentUpdatedAt
        contentSummaryHtml
        url
        author { id realName }
      }
    }
  }
  budget { cost }
}
"""

NOTE_FROM_PATH_QUERY = """
query GetNoteFromPath($path: String!) {
  noteFromPath(path: $path) {
    id
    title
    content
    contentHtml
    url
    publishedAt
    updatedAt
    groups { name }
    author { realName }
  }
}
"""

RECENT_NOTES_QUERY = """
query RecentNotes($first: Int!) {
  notes(first: $first, orderBy: {field: PUBLISHED_AT, direction: DESC}) {
    edges {
      node {
        id
        title
        url
        publishedAt
        updatedAt
        author { realName }
      }
    }
  }
}
"""

RECENT_NOTES_BY_GROUP_QUERY = """
query RecentNotesByGroup($first: Int!, $groupName: String!) {
  groups(name: $groupName) {
    edges {
      node {
        name
        notes(first: $first, orderBy: {field: PUBLISHED_AT, direction: DESC}) {
          edges {
            node {
              id
              title
              url
              publishedAt
              updatedAt
              author { realName }
            }
          }
        }
      }
    }
  }
}
"""

GROUPS_QUERY = """
query ListGroups {
  groups(first: 100) {
    edges {
      node {
        id
        name
        description
        notes { totalCount }
      }
    }
  }
}
"""


def clamp_limit(limit: Any, default: int = 5) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return default
    return max(MIN_LIMIT, min(MAX_LIMIT, value))


def _edges(connection: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [edge.get("node") or {} for edge in (connection or {}).get("edges") or []]


def raise_for_graphql_errors(payload: Dict[str, Any]) -> None:
    errors = payload.get("errors")
    if not isinstance(errors, list) or not errors:
        return

    first = errors[0] if isinstance(errors[0], dict) else {}
    extensions = first.get("extensions") or {}
    code = extensions.get("code")
    if code == "REQUEST_LIMIT_EXCEEDED":
        raise RemoteServiceError(
            "Query cost exceeds maximum allowed cost per request",
            service="kibela",
            payload=errors,
        )
    if code in ("TOKEN_BUDGET_EXHAUSTED", "TEAM_BUDGET_EXHAUSTED"):
        wait_ms = extensions.get("waitMilliseconds")
        raise RateLimitExceeded(
            f"Rate limit exceeded. Try again in {wait_ms}ms",
            retry_after_ms=wait_ms if isinstance(wait_ms, int) else None,
        )
    raise RemoteServiceError(
        f"GraphQL error: {json.dumps(errors, ensure_ascii=False)}",
        service="kibela",
        payload=errors,
    )


def query_preview(summary_html: str, query: str) -> str:
    """A window of the plain-text summary around the first hit of *query*."""
    text = strip_html(summary_html)
    index = text.lower().find(query.lower())
    if index < 0:
        return truncate(text, PREVIEW_CHARS)

    start = max(0, index - CONTEXT_BEFORE)
    end = min(len(text), index + len(query) + CONTEXT_AFTER)
    preview = text[start:end]
    if start > 0:
        preview = f"...{preview}"
    if end < len(text):
        preview = f"{preview}..."
    return preview


class KibelaClient:
    def __init__(
        self,
        config: KibelaConfig,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ):
        self.config = config
        self.http = HttpClient(
            "Kibela",
            session=session,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {config.access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": config.user_agent,
            },
        )

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        deadline: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not self.config.configured:
            raise ServiceNotConfigured(
                "KIBELA_TEAM_NAME and KIBELA_ACCESS_TOKEN must be set in environment variables"
            )
        payload = self.http.request_json(
            "POST",
            self.config.endpoint,
            json_body={"query": query, "variables": variables or {}},
            deadline=deadline,
        )
        if not isinstance(payload, dict):
            raise RemoteServiceError("Unexpected Kibela response shape", service="kibela", payload=payload)
        raise_for_graphql_errors(payload)

        cost = ((payload.get("data") or {}).get("budget") or {}).get("cost")
        if cost is not None:
            logger.debug("Kibela query cost: %s", cost)
        return payload.get("data") or {}

    def search(self, query: str, limit: int = 5, deadline: Optional[float] = None) -> str:
        data = self.execute(SEARCH_QUERY, {"query": query, "first": clamp_limit(limit)}, deadline)
        if not data:
            return f'Error: No data returned from Kibela API for query "{query}".'
        notes = _edges(data.get("search"))
        if not notes:
            return f'No notes found matching "{query}".'

        text = f'Search results for "{query}" in Kibela:\n\n'
        for index, note in enumerate(notes, start=1):
            preview = None
            if note.get("contentSummaryHtml"):
                preview = truncate(strip_html(note["contentSummaryHtml"]), PREVIEW_CHARS)
            text += _format_search_hit(index, note, preview)
        return text

    def content_search(self, query: str, limit: int = 5, deadline: Optional[float] = None) -> str:
        data = self.execute(CONTENT_SEARCH_QUERY, {"query": query, "first": clamp_limit(limit)}, deadline)
        if not data:
            return f'Error: No data returned from Kibela API for content search "{query}".'
        notes = _edges(data.get("search"))
        if not notes:
            return f'No content found matching "{query}".'

        text = f'Content search results for "{query}" in Kibela:\n\n'
        for index, note in enumerate(notes, start=1):
            preview = None
            if note.get("contentSummaryHtml"):
                preview = query_preview(note["contentSummaryHtml"], query)
            text += _format_search_hit(index, note, preview)
        return text

    def view(
        self,
        note_id: Optional[str] = None,
        url: Optional[str] = None,
        deadline: Optional[float] = None,
    ) -> str:
        """Fetch one note by numeric id or by a ``/notes/<n>`` URL."""
        if note_id:
            if not _NUMERIC_RE.match(note_id):
                raise ValueError(f'Invalid note ID "{note_id}". Please provide a numeric ID.')
            number, label = note_id, f'note ID "{note_id}"'
        elif url:
            match = _NOTE_URL_RE.search(url)
            if not match:
                raise ValueError("Invalid Kibela note URL. Expected format: /notes/{number}")
            number, label = match.group(1), f'note URL "{url}"'
        else:
            raise ValueError("Either id or url must be provided.")

        data = self.execute(NOTE_FROM_PATH_QUERY, {"path": f"/notes/{number}"}, deadline)
        note = data.get("noteFromPath")
        if not note:
            return f"Error: No data returned from Kibela API for {label}."
        return format_note(note)

    def recent(self, limit: int = 5, group: Optional[str] = None, deadline: Optional[float] = None) -> str:
        first = clamp_limit(limit)
        if group:
            data = self.execute(RECENT_NOTES_BY_GROUP_QUERY, {"first": first, "groupName": group}, deadline)
            groups = _edges(data.get("groups"))
            if not groups:
                return f'No group found with name "{group}".'
            notes = _edges(groups[0].get("notes"))
        else:
            data = self.execute(RECENT_NOTES_QUERY, {"first": first}, deadline)
            notes = _edges(data.get("notes"))

        if not notes:
            return f'No notes found in group "{group}".' if group else "No recent notes found."

        text = f'Recent notes in group "{group}":\n\n' if group else "Recent notes in Kibela:\n\n"
        for index, note in enumerate(notes, start=1):
            text += f"{index}. {note.get('title')}\n"
            author = note.get("author") or {}
            if author.get("realName"):
                text += f"   Author: {author['realName']}\n"
            text += f"   URL: {note.get('url')}\n"
            text += f"   Published: {display_time(note.get('publishedAt'))}\n\n"
        return text

    def groups(self, deadline: Optional[float] = None) -> str:
        data = self.execute(GROUPS_QUERY, deadline=deadline)
        groups = _edges(data.get("groups"))
        if not groups:
            return "No groups found in this Kibela team."

        text = "Kibela Groups:\n\n"
        for index, group in enumerate(groups, start=1):
            text += f"{index}. {group.get('name')}\n"
            text += f"   Notes: {(group.get('notes') or {}).get('totalCount', 0)}\n"
            if group.get("description"):
                text += f"   Description: {group['description']}\n"
            text += "\n"
        return text


def _format_search_hit(index: int, note: Dict[str, Any], preview: Optional[str]) -> str:
    text = f"{index}. {note.get('title')}\n"
    author = note.get("author") or {}
    if author.get("realName"):
        text += f"   Author: {author['realName']}\n"
    text += f"   URL: {note.get('url')}\n"
    if note.get("contentUpdatedAt"):
        text += f"   Updated: {display_time(note['contentUpdatedAt'])}\n"
    if preview is not None:
        text += f"   Preview: {preview}\n\n"
    else:
        text += "\n"
    return text


def format_note(note: Dict[str, Any]) -> str:
    group_names = ", ".join(g.get("name", "") for g in note.get("groups") or [])
    author = (note.get("author") or {}).get("realName") or "unknown"
    return (
        f"# {note.get('title')}\n\n"
        f"**URL:** {note.get('url')}\n"
        f"**Author:** {author}\n"
        f"**Published:** {display_time(note.get('publishedAt'))}\n"
        f"**Updated:** {display_time(note.get('updatedAt'))}\n"
        f"**Groups:** {group_names}\n\n"
        f"---\n\n"
        f"{note.get('contentHtml') or note.get('content') or ''}"
    )
