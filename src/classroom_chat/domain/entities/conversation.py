from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEFAULT_GROUP_NAME = "New Group"


@dataclass(frozen=True, slots=True)
class Conversation:
    id: int | None
    type: str
    creator_id: int
    classroom_id: int | None
    name: str | None
    pair_key: str | None
    created_at: datetime


def single_pair_key(classroom_id: int | None, user_a: int, user_b: int) -> str:
    """Order-independent key of a one-to-one conversation inside a classroom."""
    low, high = sorted((user_a, user_b))
    scope = "-" if classroom_id is None else str(classroom_id)
    return f"{scope}:{low}:{high}"
