from __future__ import annotations

from typing import Protocol

from classroom_chat.application.repositories.attachment import AttachmentWriter
from classroom_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from classroom_chat.application.repositories.message import MessageWriter
from classroom_chat.application.repositories.participant import (
    ParticipantReader,
    ParticipantWriter,
)


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants: ParticipantReader
    participants_w: ParticipantWriter
    messages_w: MessageWriter
    attachments_w: AttachmentWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
