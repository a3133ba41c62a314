from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    SINGLE = "single"
    GROUP = "group"


class ChatEvent(StrEnum):
    """Socket event names shared with the web client."""

    NEW_MESSAGE = "NEW_MESSAGE"
    CREATE_NEW_MESSAGE = "CREATE_NEW_MESSAGE"
    FIRST_TIME_MESSAGE = "FIRST_TIME_MESSAGE"
