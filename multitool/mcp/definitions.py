from typing import List, Dict, Any

from .protocol import JSON_SCHEMA_2020_12, SUPPORTED_PROTOCOL_VERSIONS

__all__ = [
    "JSON_SCHEMA_2020_12",
    "SUPPORTED_PROTOCOL_VERSIONS",
    "TOOLS_SCHEMAS",
    "RESOURCE_TEMPLATES",
    "READ_ONLY_TOOLS",
    "DESTRUCTIVE_TOOLS",
    "IDEMPOTENT_TOOLS",
    "OPEN_WORLD_TOOLS",
]

_LIMIT_1_20 = {"type": "integer", "minimum": 1, "maximum": 20, "default": 5, "description": "Maximum number of results to return"}

TOOLS_SCHEMAS: List[Dict[str, Any]] = [
    # Obsidian vault
    {
        "name": "obsidian-search",
        "description": "List files in an Obsidian vault directory, optionally filtered by a substring of the file name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path to search in (leave empty for root)"},
                "query": {"type": "string", "description": "Search query (optional)"},
            },
        },
    },
    {
        "name": "obsidian-view",
        "description": "View the content of a file in the Obsidian vault.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path to the file to view"},
            },
            "required": ["path"],
        },
    },
    {
        "name": "obsidian-content-search",
        "description": "Search the contents of text files (.md, .txt, .csv, .json, .yaml, .yml) directly inside one vault directory. Not recursive.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to search for in file contents"},
                "path": {"type": "string", "description": "Path to search in (leave empty for root)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "obsidian-create",
        "description": "Create a new file in the Obsidian vault. Parent directories are created as needed.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path where to create the new file (relative to vault root)"},
                "content": {"type": "string", "default": "", "description": "Initial content for the new file"},
                "overwrite": {"type": "boolean", "default": False, "description": "Whether to overwrite if file already exists"},
            },
            "required": ["path"],
        },
    },
    {
        "name": "obsidian-update",
        "description": "Replace or append to the content of an existing file in the Obsidian vault.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "Path to the file to update"},
                "content": {"type": "string", "description": "New content for the file"},
                "append": {"type": "boolean", "default": False, "description": "Whether to append to existing content instead of replacing"},
            },
            "required": ["path", "content"],
        },
    },
    # Brave search
    {
        "name": "brave_web_search",
        "description": (
            "Performs a web search using the Brave Search API, ideal for general queries, news, articles, "
            "and online content. Maximum 20 results per request, with offset for pagination."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query (max 400 chars, 50 words)"},
                "count": {"type": "integer", "default": 10, "description": "Number of results (1-20, default 10)"},
                "offset": {"type": "integer", "default": 0, "description": "Pagination offset (max 9, default 0)"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "brave_local_search",
        "description": (
            "Searches for local businesses and places using Brave's Local Search API. Returns names, "
            "addresses, ratings, phone numbers and opening hours. Falls back to web search when no "
            "local results are found."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Local search query (e.g. 'pizza near Central Park')"},
                "count": {"type": "integer", "default": 5, "description": "Number of results (1-20, default 5)"},
            },
            "required": ["query"],
        },
    },
    # Kibela
    {
        "name": "kibela-search",
        "description": "Search Kibela notes by keyword.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query for Kibela notes"},
                "limit": dict(_LIMIT_1_20),
            },
            "required": ["query"],
        },
    },
    {
        "name": "kibela-content-search",
        "description": "Search Kibela note contents and show a preview around the first match.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to search for in note contents"},
                "limit": dict(_LIMIT_1_20),
            },
            "required": ["query"],
        },
    },
    {
        "name": "kibela-view",
        "description": "View a Kibela note by numeric ID or by note URL.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "ID of the note to view"},
                "url": {"type": "string", "description": "URL of the note to view"},
            },
        },
    },
    {
        "name": "kibela-recent",
        "description": "List recently published Kibela notes, optionally within one group.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": dict(_LIMIT_1_20),
                "group": {"type": "string", "description": "Filter by group name (optional)"},
            },
        },
    },
    {
        "name": "kibela-groups",
        "description": "List the groups of the Kibela team.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    # Google Drive
    {
        "name": "gdrive_search",
        "description": "Full-text search for files in Google Drive.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query for Google Drive files"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 20, "default": 10, "description": "Maximum number of results to return"},
            },
            "required": ["query"],
        },
    },
    {
        "name": "gdrive_summarize",
        "description": "Show metadata and the first 1000 characters of a Google Drive file.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "file_id": {"type": "string", "description": "Google Drive file ID to summarize"},
            },
            "required": ["file_id"],
        },
    },
    {
        "name": "gdrive_list",
        "description": "List the contents of a Google Drive folder, folders first.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "folder_id": {"type": "string", "description": "Google Drive folder ID to list contents (leave empty for root)"},
                "limit": {"type": "integer", "minimum": 1, "maximum": 50, "default": 20, "description": "Maximum number of items to return"},
                "page_token": {"type": "string", "description": "Pagination token for the next page of results"},
            },
        },
    },
    # Slack
    {
        "name": "slack_list_channels",
        "description": "List public channels in the workspace",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "default": 100, "description": "Maximum number of channels to return (default 100, max 200)"},
                "cursor": {"type": "string", "description": "Pagination cursor for next page of results"},
            },
        },
    },
    {
        "name": "slack_post_message",
        "description": "Post a new message to a Slack channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel to post to"},
                "text": {"type": "string", "description": "The message text to post"},
            },
            "required": ["channel_id", "text"],
        },
    },
    {
        "name": "slack_reply_to_thread",
        "description": "Reply to a specific message thread in Slack",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the thread"},
                "thread_ts": {"type": "string", "description": "The timestamp of the parent message"},
                "text": {"type": "string", "description": "The reply text"},
            },
            "required": ["channel_id", "thread_ts", "text"],
        },
    },
    {
        "name": "slack_add_reaction",
        "description": "Add an emoji reaction to a message",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the message"},
                "timestamp": {"type": "string", "description": "The timestamp of the message to react to"},
                "reaction": {"type": "string", "description": "The name of the emoji reaction (without ::)"},
            },
            "required": ["channel_id", "timestamp", "reaction"],
        },
    },
    {
        "name": "slack_get_channel_history",
        "description": "Get recent messages from a channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel"},
                "limit": {"type": "integer", "default": 10, "description": "Number of messages to retrieve (default 10)"},
            },
            "required": ["channel_id"],
        },
    },
    {
        "name": "slack_get_thread_replies",
        "description": "Get all replies in a message thread",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel containing the thread"},
                "thread_ts": {"type": "string", "description": "The timestamp of the parent message"},
            },
            "required": ["channel_id", "thread_ts"],
        },
    },
    {
        "name": "slack_get_users",
        "description": "Get a list of all users in the workspace with their basic profile information",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "default": 100, "description": "Maximum number of users to return (default 100, max 200)"},
                "cursor": {"type": "string", "description": "Pagination cursor for next page of results"},
            },
        },
    },
    {
        "name": "slack_get_user_profile",
        "description": "Get detailed profile information for a specific user",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user_id": {"type": "string", "description": "The ID of the user"},
            },
            "required": ["user_id"],
        },
    },
    {
        "name": "slack_get_unreplied_mentions",
        "description": "Get unreplied mentions in a specific channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel to check"},
                "user_id": {"type": "string", "description": "The ID of the user to check mentions for"},
                "hours": {"type": "number", "default": 24, "description": "How many hours back to check (default: 24)"},
            },
            "required": ["channel_id", "user_id"],
        },
    },
    {
        "name": "slack_summarize_recent_activity",
        "description": "Get messages from the last 24 hours in a channel, for summarization",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "The ID of the channel to check"},
                "hours": {"type": "number", "default": 24, "description": "How many hours back to retrieve (default: 24)"},
            },
            "required": ["channel_id"],
        },
    },
]

RESOURCE_TEMPLATES: List[Dict[str, Any]] = [
    {
        "uriTemplate": "obsidian://{dirPath}/list",
        "name": "obsidian-list",
        "description": "JSON listing of a vault directory",
        "mimeType": "application/json",
    },
    {
        "uriTemplate": "obsidian://{filePath}/read",
        "name": "obsidian-read",
        "description": "JSON content and metadata of a vault file",
        "mimeType": "application/json",
    },
]

READ_ONLY_TOOLS = {
    "obsidian-search", "obsidian-view", "obsidian-content-search",
    "brave_web_search", "brave_local_search",
    "kibela-search", "kibela-content-search", "kibela-view", "kibela-recent", "kibela-groups",
    "gdrive_search", "gdrive_summarize", "gdrive_list",
    "slack_list_channels", "slack_get_channel_history", "slack_get_thread_replies",
    "slack_get_users", "slack_get_user_profile", "slack_get_unreplied_mentions",
    "slack_summarize_recent_activity",
}

DESTRUCTIVE_TOOLS = {"obsidian-create", "obsidian-update"}

IDEMPOTENT_TOOLS = READ_ONLY_TOOLS.union({"obsidian-update", "slack_add_reaction"})

# Tools that only touch the local vault.
CLOSED_WORLD_TOOLS = {
    "obsidian-search", "obsidian-view", "obsidian-content-search",
    "obsidian-create", "obsidian-update",
}

OPEN_WORLD_TOOLS = {s["name"] for s in TOOLS_SCHEMAS} - CLOSED_WORLD_TOOLS
