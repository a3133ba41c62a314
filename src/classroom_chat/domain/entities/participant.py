from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Participant:
    conversation_id: int
    user_id: int
    joined_at: datetime
