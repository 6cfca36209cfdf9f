"""
Slack Web API client.

Every Web API response carries ``ok``; a false ``ok`` is raised as
RemoteServiceError with Slack's error code as the message. Lookups that only
decorate a result (permalinks, channel info, per-thread replies during a
scan) degrade to empty values instead of failing the whole call.
"""

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from multitool.core.config import SlackConfig
from multitool.core.errors import RemoteServiceError, ServiceNotConfigured
from multitool.core.formatting import slack_ts_to_display
from multitool.services.http import HttpClient

logger = logging.getLogger("MultiTool.services.slack")

MAX_PAGE_SIZE = 200
RECENT_ACTIVITY_HISTORY_LIMIT = 100
THREAD_PREVIEW_MAX_REPLIES = 3


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


class SlackClient:
    def __init__(
        self,
        config: SlackConfig,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.config = config
        self._clock = clock or time.time
        self.http = HttpClient(
            "Slack",
            session=session,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {config.bot_token}",
                "Content-Type": "application/json",
            },
        )

    def _url(self, method: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{method}"

    def call(
        self,
        method: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        deadline: Optional[float] = None,
    ) -> Dict[str, Any]:
        if not self.config.configured:
            raise ServiceNotConfigured("SLACK_BOT_TOKEN and SLACK_TEAM_ID must be set in environment variables")

        if body is not None:
            payload = self.http.request_json("POST", self._url(method), json_body=body, deadline=deadline)
        else:
            payload = self.http.request_json("GET", self._url(method), params=params, deadline=deadline)

        if not isinstance(payload, dict) or not payload.get("ok"):
            error = payload.get("error") if isinstance(payload, dict) else "invalid_response"
            raise RemoteServiceError(f"{method} failed: {error}", service="slack", payload=payload)
        return payload

    def _oldest(self, hours: float) -> str:
        return str(int(self._clock() - hours * 3600))

    def permalink(self, channel_id: str, message_ts: str, deadline: Optional[float] = None) -> str:
        try:
            result = self.call(
                "chat.getPermalink",
                params={"channel": channel_id, "message_ts": message_ts},
                deadline=deadline,
            )
        except RemoteServiceError as exc:
            logger.debug("Permalink lookup failed for %s/%s: %s", channel_id, message_ts, exc)
            return ""
        return result.get("permalink") or ""

    def channel_info(self, channel_id: str, deadline: Optional[float] = None) -> Dict[str, Any]:
        try:
            result = self.call("conversations.info", params={"channel": channel_id}, deadline=deadline)
        except RemoteServiceError as exc:
            logger.debug("Channel info lookup failed for %s: %s", channel_id, exc)
            return {}
        return result.get("channel") or {}

    def list_channels(self, limit: int = 100, cursor: Optional[str] = None, deadline: Optional[float] = None) -> str:
        params = {
            "types": "public_channel",
            "exclude_archived": "true",
            "limit": min(limit, MAX_PAGE_SIZE),
            "team_id": self.config.team_id,
        }
        if cursor:
            params["cursor"] = cursor
        response = self.call("conversations.list", params=params, deadline=deadline)

        channels = response.get("channels") or []
        text = "Channels in workspace:\n\n"
        if not channels:
            text += "No channels found."
        for index, channel in enumerate(channels, start=1):
            text += f"{index}. #{channel.get('name')} (ID: {channel.get('id')})\n"
            purpose = (channel.get("purpose") or {}).get("value")
            if purpose:
                text += f"   Purpose: {purpose}\n"
            text += f"   Members: {channel.get('num_members', 0)}\n\n"

        next_cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if next_cursor:
            text += f"\nMore channels available. Use cursor: {next_cursor}"
        return text

    def post_message(self, channel_id: str, text: str, deadline: Optional[float] = None) -> str:
        response = self.call("chat.postMessage", body={"channel": channel_id, "text": text}, deadline=deadline)
        return f"Message successfully posted to <#{channel_id}> with timestamp {response.get('ts')}"

    def reply_to_thread(self, channel_id: str, thread_ts: str, text: str, deadline: Optional[float] = None) -> str:
        self.call(
            "chat.postMessage",
            body={"channel": channel_id, "thread_ts": thread_ts, "text": text},
            deadline=deadline,
        )
        return f"Reply successfully posted to thread in <#{channel_id}>"

    def add_reaction(self, channel_id: str, timestamp: str, reaction: str, deadline: Optional[float] = None) -> str:
        self.call(
            "reactions.add",
            body={"channel": channel_id, "timestamp": timestamp, "name": reaction},
            deadline=deadline,
        )
        return f"Reaction :{reaction}: added to message in <#{channel_id}>"

    def channel_history(self, channel_id: str, limit: int = 10, deadline: Optional[float] = None) -> str:
        response = self.call(
            "conversations.history",
            params={"channel": channel_id, "limit": limit},
            deadline=deadline,
        )
        messages = response.get("messages") or []
        text = f"Recent messages in <#{channel_id}>:\n\n"
        if not messages:
            return text + "No messages found."

        for msg in messages:
            text += f"[{slack_ts_to_display(msg.get('ts', ''))}] "
            if msg.get("user"):
                text += f"<@{msg['user']}>: "
            text += f"{msg.get('text', '')}\n"
            reply_count = msg.get("reply_count") or 0
            if msg.get("thread_ts") and reply_count > 0:
                text += f"   ({reply_count} {_plural(reply_count, 'reply', 'replies')} in thread)\n"
            text += "\n"
        return text

    def thread_replies(self, channel_id: str, thread_ts: str, deadline: Optional[float] = None) -> str:
        response = self.call(
            "conversations.replies",
            params={"channel": channel_id, "ts": thread_ts},
            deadline=deadline,
        )
        messages = response.get("messages") or []
        text = (
            f"Thread replies in <#{channel_id}> "
            f"(parent message from {slack_ts_to_display(thread_ts)}):\n\n"
        )
        if len(messages) <= 1:
            return text + "No replies found in this thread."

        parent = messages[0]
        text += f"Parent: <@{parent.get('user')}>: {parent.get('text', '')}\n\n"
        for msg in messages[1:]:
            text += f"[{slack_ts_to_display(msg.get('ts', ''))}] <@{msg.get('user')}>: {msg.get('text', '')}\n\n"
        return text

    def users(self, limit: int = 100, cursor: Optional[str] = None, deadline: Optional[float] = None) -> str:
        params = {"limit": min(limit, MAX_PAGE_SIZE), "team_id": self.config.team_id}
        if cursor:
            params["cursor"] = cursor
        response = self.call("users.list", params=params, deadline=deadline)

        members = response.get("members") or []
        text = "Users in workspace:\n\n"
        if not members:
            text += "No users found."
        for index, user in enumerate(members, start=1):
            display = user.get("real_name") or user.get("name")
            if user.get("is_bot") and user.get("name") != "slackbot":
                text += f"{index}. \U0001f916 {display} (ID: {user.get('id')}) [BOT]\n"
            else:
                text += f"{index}. {display} (ID: {user.get('id')})\n"
            profile = user.get("profile") or {}
            if profile.get("status_text"):
                text += f"   Status: {profile.get('status_emoji') or ''} {profile['status_text']}\n"
            text += "\n"

        next_cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if next_cursor:
            text += f"\nMore users available. Use cursor: {next_cursor}"
        return text

    def user_profile(self, user_id: str, deadline: Optional[float] = None) -> str:
        response = self.call(
            "users.profile.get",
            params={"user": user_id, "include_labels": "true"},
            deadline=deadline,
        )
        profile = response.get("profile") or {}
        text = f"Profile for <@{user_id}>:\n\n"
        text += f"Name: {profile.get('real_name') or 'N/A'}\n"
        text += f"Display Name: {profile.get('display_name') or 'N/A'}\n"
        text += f"Email: {profile.get('email') or 'N/A'}\n"
        if profile.get("phone"):
            text += f"Phone: {profile['phone']}\n"
        if profile.get("title"):
            text += f"Title: {profile['title']}\n"
        if profile.get("status_text"):
            text += f"Status: {profile.get('status_emoji') or ''} {profile['status_text']}\n"

        fields = [f for f in (profile.get("fields") or {}).values() if f]
        if fields:
            text += "\nCustom Fields:\n"
            for field in fields:
                text += f"- {field.get('label')}: {field.get('value')}\n"
        return text

    def find_unreplied_mentions(
        self,
        channel_id: str,
        user_id: str,
        hours: float = 24,
        deadline: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        """Top-level messages mentioning *user_id* that the user has not answered in-thread."""
        history = self.call(
            "conversations.history",
            params={"channel": channel_id, "oldest": self._oldest(hours)},
            deadline=deadline,
        )
        mention = re.compile(f"<@{re.escape(user_id)}>")
        candidates = [
            msg
            for msg in history.get("messages") or []
            if mention.search(msg.get("text") or "") and not msg.get("thread_ts")
        ]

        unreplied = []
        for msg in candidates:
            try:
                replies = self.call(
                    "conversations.replies",
                    params={"channel": channel_id, "ts": msg.get("ts")},
                    deadline=deadline,
                )
            except RemoteServiceError as exc:
                logger.debug("Skipping mention %s, reply lookup failed: %s", msg.get("ts"), exc)
                continue
            if any(reply.get("user") == user_id for reply in (replies.get("messages") or [])[1:]):
                continue
            unreplied.append(
                {
                    "timestamp": msg.get("ts", ""),
                    "text": msg.get("text", ""),
                    "user": msg.get("user"),
                    "permalink": self.permalink(channel_id, msg.get("ts", ""), deadline),
                }
            )
        return unreplied

    def unreplied_mentions(self, channel_id: str, user_id: str, hours: float = 24, deadline: Optional[float] = None) -> str:
        mentions = self.find_unreplied_mentions(channel_id, user_id, hours, deadline)
        text = f"Unreplied mentions for <@{user_id}> in <#{channel_id}> (past {hours:g} hours):\n\n"
        if not mentions:
            return text + "No unreplied mentions found."
        for index, item in enumerate(mentions, start=1):
            text += f"{index}. [{slack_ts_to_display(item['timestamp'])}] From <@{item['user']}>:\n"
            text += f"   {item['text']}\n"
            if item["permalink"]:
                text += f"   Link: {item['permalink']}\n"
            text += "\n"
        return text

    def collect_recent_activity(self, channel_id: str, hours: float = 24, deadline: Optional[float] = None) -> Dict[str, Any]:
        """
        History since ``now - hours`` with each thread parent expanded to its
        replies. Replies that also appear in the history are dropped.
        """
        history = self.call(
            "conversations.history",
            params={
                "channel": channel_id,
                "oldest": self._oldest(hours),
                "limit": RECENT_ACTIVITY_HISTORY_LIMIT,
            },
            deadline=deadline,
        )

        messages = []
        for msg in history.get("messages") or []:
            thread_ts = msg.get("thread_ts")
            ts = msg.get("ts", "")
            if thread_ts and thread_ts == ts:
                entry = dict(msg)
                try:
                    replies = self.call(
                        "conversations.replies",
                        params={"channel": channel_id, "ts": ts},
                        deadline=deadline,
                    )
                    entry["replies"] = (replies.get("messages") or [])[1:]
                except RemoteServiceError as exc:
                    logger.debug("Thread %s replies unavailable: %s", ts, exc)
                entry["permalink"] = self.permalink(channel_id, ts, deadline)
                messages.append(entry)
            elif not thread_ts:
                entry = dict(msg)
                entry["permalink"] = self.permalink(channel_id, ts, deadline)
                messages.append(entry)

        return {"messages": messages, "channel_info": self.channel_info(channel_id, deadline)}

    def recent_activity(self, channel_id: str, hours: float = 24, deadline: Optional[float] = None) -> str:
        activity = self.collect_recent_activity(channel_id, hours, deadline)
        return format_recent_activity(channel_id, hours, activity)


def format_recent_activity(channel_id: str, hours: float, activity: Dict[str, Any]) -> str:
    info = activity.get("channel_info") or {}
    channel_name = f"#{info['name']}" if info.get("name") else channel_id
    messages = activity.get("messages") or []

    text = f"Recent activity in {channel_name} (past {hours:g} hours):\n\n"
    if not messages:
        return text + "No messages found in this time period."

    participants = {msg.get("user") for msg in messages}
    threads = [msg for msg in messages if msg.get("thread_ts") and msg.get("thread_ts") == msg.get("ts")]
    text += "Summary Statistics:\n"
    text += f"- Total Messages: {len(messages)}\n"
    text += f"- Unique Participants: {len(participants)}\n"
    text += f"- Conversation Threads: {len(threads)}\n\n"
    text += "Message Timeline:\n\n"

    for msg in messages:
        text += f"[{slack_ts_to_display(msg.get('ts', ''))}] <@{msg.get('user')}>: {msg.get('text', '')}\n"
        replies = msg.get("replies") or []
        if replies:
            text += f"   Thread with {len(replies)} {_plural(len(replies), 'reply', 'replies')}:\n"
            if len(replies) <= THREAD_PREVIEW_MAX_REPLIES:
                for reply in replies:
                    text += f"   - <@{reply.get('user')}>: {reply.get('text', '')}\n"
            else:
                first, last = replies[0], replies[-1]
                text += f"   - <@{first.get('user')}>: {first.get('text', '')}\n"
                text += f"   - ... {len(replies) - 2} more messages ...\n"
                text += f"   - <@{last.get('user')}>: {last.get('text', '')}\n"
        if msg.get("permalink"):
            text += f"   Link: {msg['permalink']}\n"
        text += "\n"
    return text
