from __future__ import annotations

from typing import Protocol

from classroom_chat.domain.entities.attachment import Attachment


class AttachmentWriter(Protocol):
    async def create(self, attachment: Attachment) -> Attachment: ...
