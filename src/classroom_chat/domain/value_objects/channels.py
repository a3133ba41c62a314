"""Channel naming shared with every connected client.

Format is part of the wire contract: ``user#<id>`` and ``convo#<id>``.
"""
from __future__ import annotations

USER_PREFIX = "user#"
CONVERSATION_PREFIX = "convo#"


def user_channel(user_id: int) -> str:
    return f"{USER_PREFIX}{user_id}"


def conversation_channel(conversation_id: int) -> str:
    return f"{CONVERSATION_PREFIX}{conversation_id}"
