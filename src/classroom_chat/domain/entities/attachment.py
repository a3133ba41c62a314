from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Attachment:
    id: int | None
    url: str
    name: str | None = None
    content_type: str | None = None
    size: int | None = None
