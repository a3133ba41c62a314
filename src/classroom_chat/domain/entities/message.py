from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int | None
    conversation_id: int
    sender_id: int
    body: str
    attachment_id: int | None
    can_reply: bool
    created_at: datetime
