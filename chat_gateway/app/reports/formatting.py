"""Plain-text rendering of bug reports."""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..models import AgentMessage

UNKNOWN_USER = "Unknown User"


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(part if isinstance(part, str) else json.dumps(part) for part in content)
    return json.dumps(content)


def format_message_history(messages: Iterable[AgentMessage], now: Optional[datetime] = None) -> str:
    """
    Render agent messages as numbered text blocks.

    Messages carry no timestamp of their own, so every block is stamped with
    the time of formatting.

    Example block:
        [1] 2024-01-01T00:00:00+00:00 - HUMAN:
        hello
    """
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    blocks = []
    for index, message in enumerate(messages, start=1):
        role = (message.type or "unknown").upper()
        blocks.append(f"[{index}] {timestamp} - {role}:\n{_content_text(message.content)}\n")
    return "\n---\n".join(blocks)


def build_subject(thread_id: str, user_email: Optional[str]) -> str:
    return f"[AGENT BUG] {thread_id} / {user_email or UNKNOWN_USER}"


def build_body(thread_id: str, thread_title: str, message_history: str, user_email: Optional[str]) -> str:
    return "\n".join([
        f"Thread ID: {thread_id}",
        f"Thread Title: {thread_title}",
        f"User: {user_email or UNKNOWN_USER}",
        "",
        "Message History:",
        message_history,
        "",
        "---",
        "This bug report was generated automatically from the agent chat gateway.",
    ])
