"""
Tool implementations. Each ``_do_*`` function takes the shared context, the
call arguments and the call deadline, and returns the response text.
"""

import logging
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, Optional

from multitool.core.formatting import display_time, format_file_size
from multitool.core.types import FileReadResult
from multitool.vault.search import filter_by_name, format_listing, format_search_report, search_content

from .context import ToolContext

logger = logging.getLogger("MultiTool.mcp.tools")


class ToolArgumentError(ValueError):
    """Raised when tool arguments are missing or have the wrong type."""


def _require_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolArgumentError(f"'{key}' is required and must be a non-empty string")
    return value


def _opt_str(args: Dict[str, Any], key: str, default: str = "") -> str:
    value = args.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ToolArgumentError(f"'{key}' must be a string")
    return value


def _opt_int(args: Dict[str, Any], key: str, default: int) -> int:
    value = args.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise ToolArgumentError(f"'{key}' must be an integer")
    return int(value)


def _opt_number(args: Dict[str, Any], key: str, default: float) -> float:
    value = args.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ToolArgumentError(f"'{key}' must be a number")
    return value


def _opt_bool(args: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = args.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ToolArgumentError(f"'{key}' must be a boolean")
    return value


# Obsidian vault

def _do_obsidian_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    listing = ctx.vault.list(_opt_str(args, "path"))
    return format_listing(filter_by_name(listing, _opt_str(args, "query")))


def view_file(ctx: ToolContext, path: str) -> FileReadResult:
    """Read through the view cache."""
    cache = ctx.cache
    if cache is None:
        return ctx.vault.read(path)
    key = ctx.vault.cache_key(path)
    cached = cache.get(key)
    if cached is not None:
        logger.debug("Using cached result for %s", key)
        return cached
    generation = cache.generation(key)
    result = ctx.vault.read(path)
    if not cache.put(key, result, generation=generation):
        logger.debug("Skipped caching %s", key)
    return result


def _do_obsidian_view(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    data = view_file(ctx, _require_str(args, "path"))
    info = data.file_info
    is_markdown = PurePosixPath(info.name).suffix.lower() == ".md"
    return (
        f"File: {info.name}\n"
        f"Size: {format_file_size(info.size)}\n"
        f"Last Modified: {display_time(info.modified)}\n\n"
        f"{'Markdown Content' if is_markdown else 'Content'}:\n\n{data.content}"
    )


def _do_obsidian_content_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    report = search_content(ctx.vault, _opt_str(args, "path"), _require_str(args, "query"))
    return format_search_report(report)


def _do_obsidian_create(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    result = ctx.vault.create(
        _require_str(args, "path"),
        _opt_str(args, "content"),
        overwrite=_opt_bool(args, "overwrite"),
    )
    if not result.created:
        return f"File already exists: {result.path}. Use overwrite=true to replace it."
    entry = result.entry
    return (
        f"File created successfully: {result.path}\n"
        f"Size: {format_file_size(entry.size)}\n"
        f"Created: {display_time(entry.modified)}"
    )


def _do_obsidian_update(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    path = _require_str(args, "path")
    content = args.get("content")
    if not isinstance(content, str):
        raise ToolArgumentError("'content' is required and must be a string")
    append = _opt_bool(args, "append")
    entry = ctx.vault.update(path, content, append=append)
    return (
        f"File updated successfully: {entry.path}\n"
        f"Size: {format_file_size(entry.size)}\n"
        f"Modified: {display_time(entry.modified)}\n"
        f"Operation: {'Appended' if append else 'Replaced'}"
    )


# Brave search

def _do_brave_web_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.brave.web_search(
        _require_str(args, "query"),
        count=_opt_int(args, "count", 10),
        offset=_opt_int(args, "offset", 0),
        deadline=deadline,
    )


def _do_brave_local_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.brave.local_search(_require_str(args, "query"), count=_opt_int(args, "count", 5), deadline=deadline)


# Kibela

def _do_kibela_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.kibela.search(_require_str(args, "query"), limit=_opt_int(args, "limit", 5), deadline=deadline)


def _do_kibela_content_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.kibela.content_search(_require_str(args, "query"), limit=_opt_int(args, "limit", 5), deadline=deadline)


def _do_kibela_view(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.kibela.view(
        note_id=_opt_str(args, "id") or None,
        url=_opt_str(args, "url") or None,
        deadline=deadline,
    )


def _do_kibela_recent(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.kibela.recent(limit=_opt_int(args, "limit", 5), group=_opt_str(args, "group") or None, deadline=deadline)


def _do_kibela_groups(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.kibela.groups(deadline=deadline)


# Google Drive

def _do_gdrive_search(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.gdrive.search(_require_str(args, "query"), limit=_opt_int(args, "limit", 10))


def _do_gdrive_summarize(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.gdrive.summarize(_require_str(args, "file_id"))


def _do_gdrive_list(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.gdrive.list(
        folder_id=_opt_str(args, "folder_id") or None,
        limit=_opt_int(args, "limit", 20),
        page_token=_opt_str(args, "page_token") or None,
    )


# Slack

def _do_slack_list_channels(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.list_channels(
        limit=_opt_int(args, "limit", 100), cursor=_opt_str(args, "cursor") or None, deadline=deadline
    )


def _do_slack_post_message(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.post_message(_require_str(args, "channel_id"), _require_str(args, "text"), deadline=deadline)


def _do_slack_reply_to_thread(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.reply_to_thread(
        _require_str(args, "channel_id"),
        _require_str(args, "thread_ts"),
        _require_str(args, "text"),
        deadline=deadline,
    )


def _do_slack_add_reaction(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.add_reaction(
        _require_str(args, "channel_id"),
        _require_str(args, "timestamp"),
        _require_str(args, "reaction"),
        deadline=deadline,
    )


def _do_slack_get_channel_history(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.channel_history(
        _require_str(args, "channel_id"), limit=_opt_int(args, "limit", 10), deadline=deadline
    )


def _do_slack_get_thread_replies(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.thread_replies(
        _require_str(args, "channel_id"), _require_str(args, "thread_ts"), deadline=deadline
    )


def _do_slack_get_users(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.users(limit=_opt_int(args, "limit", 100), cursor=_opt_str(args, "cursor") or None, deadline=deadline)


def _do_slack_get_user_profile(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.user_profile(_require_str(args, "user_id"), deadline=deadline)


def _do_slack_get_unreplied_mentions(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.unreplied_mentions(
        _require_str(args, "channel_id"),
        _require_str(args, "user_id"),
        hours=_opt_number(args, "hours", 24),
        deadline=deadline,
    )


def _do_slack_summarize_recent_activity(ctx: ToolContext, args: Dict[str, Any], deadline: Optional[float]) -> str:
    return ctx.slack.recent_activity(
        _require_str(args, "channel_id"), hours=_opt_number(args, "hours", 24), deadline=deadline
    )


ToolFn = Callable[[ToolContext, Dict[str, Any], Optional[float]], str]

TOOL_DISPATCH: Dict[str, ToolFn] = {
    "obsidian-search": _do_obsidian_search,
    "obsidian-view": _do_obsidian_view,
    "obsidian-content-search": _do_obsidian_content_search,
    "obsidian-create": _do_obsidian_create,
    "obsidian-update": _do_obsidian_update,
    "brave_web_search": _do_brave_web_search,
    "brave_local_search": _do_brave_local_search,
    "kibela-search": _do_kibela_search,
    "kibela-content-search": _do_kibela_content_search,
    "kibela-view": _do_kibela_view,
    "kibela-recent": _do_kibela_recent,
    "kibela-groups": _do_kibela_groups,
    "gdrive_search": _do_gdrive_search,
    "gdrive_summarize": _do_gdrive_summarize,
    "gdrive_list": _do_gdrive_list,
    "slack_list_channels": _do_slack_list_channels,
    "slack_post_message": _do_slack_post_message,
    "slack_reply_to_thread": _do_slack_reply_to_thread,
    "slack_add_reaction": _do_slack_add_reaction,
    "slack_get_channel_history": _do_slack_get_channel_history,
    "slack_get_thread_replies": _do_slack_get_thread_replies,
    "slack_get_users": _do_slack_get_users,
    "slack_get_user_profile": _do_slack_get_user_profile,
    "slack_get_unreplied_mentions": _do_slack_get_unreplied_mentions,
    "slack_summarize_recent_activity": _do_slack_summarize_recent_activity,
}

# Prefix for error text returned by each tool.
ERROR_PREFIXES = {
    "obsidian-search": "Error searching files",
    "obsidian-view": "Error reading file",
    "obsidian-content-search": "Error searching file contents",
    "obsidian-create": "Error creating file",
    "obsidian-update": "Error updating file",
    "kibela-search": "Error searching Kibela",
    "kibela-content-search": "Error searching Kibela content",
    "kibela-view": "Error retrieving Kibela note",
    "kibela-recent": "Error retrieving recent Kibela notes",
    "kibela-groups": "Error retrieving Kibela groups",
    "gdrive_search": "Error searching Google Drive",
    "gdrive_summarize": "Error summarizing Google Drive file",
    "gdrive_list": "Error listing Google Drive folder",
    "brave_web_search": "Error performing web search",
    "brave_local_search": "Error performing local search",
    "slack_list_channels": "Error listing channels",
    "slack_post_message": "Error posting message",
    "slack_reply_to_thread": "Error posting reply",
    "slack_add_reaction": "Error adding reaction",
    "slack_get_channel_history": "Error retrieving channel history",
    "slack_get_thread_replies": "Error retrieving thread replies",
    "slack_get_users": "Error retrieving users",
    "slack_get_user_profile": "Error retrieving user profile",
    "slack_get_unreplied_mentions": "Error retrieving unreplied mentions",
    "slack_summarize_recent_activity": "Error retrieving recent activity",
}


def error_text(name: str, message: str) -> str:
    return f"{ERROR_PREFIXES.get(name, 'Error')}: {message}"
