from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    """A chat participant as seen by this service. Owned by the main application."""

    id: int
    name: str
    avatar_url: str | None = None
