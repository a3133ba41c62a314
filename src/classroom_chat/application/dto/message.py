from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from classroom_chat.domain.entities.attachment import Attachment
from classroom_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class SendMessageCommand:
    sender: User
    conversation_id: int
    body: str
    can_reply: bool = True
    attachment: Attachment | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class StartConversationCommand:
    sender: User
    receivers: tuple[User, ...]
    body: str
    classroom_id: int | None = None
    can_reply: bool = True
    attachment: Attachment | None = None
    created_at: datetime | None = None

    def for_conversation(self, conversation_id: int) -> SendMessageCommand:
        return SendMessageCommand(
            sender=self.sender,
            conversation_id=conversation_id,
            body=self.body,
            can_reply=self.can_reply,
            attachment=self.attachment,
            created_at=self.created_at,
        )


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    """Message as delivered to clients.

    Built straight from the inbound event so it can be acknowledged before the
    database round-trip; ``id`` stays ``None`` until the message is stored.
    """

    sender: User
    conversation_id: int
    body: str
    can_reply: bool
    created_at: datetime
    attachment: Attachment | None = None
    id: int | None = None

    @classmethod
    def from_command(cls, command: SendMessageCommand, created_at: datetime) -> OutgoingMessage:
        return cls(
            sender=command.sender,
            conversation_id=command.conversation_id,
            body=command.body,
            can_reply=command.can_reply,
            created_at=command.created_at or created_at,
            attachment=command.attachment,
        )

    def with_id(self, message_id: int) -> OutgoingMessage:
        return replace(self, id=message_id)

    def with_attachment(self, attachment: Attachment) -> OutgoingMessage:
        return replace(self, attachment=attachment)

    def to_payload(self) -> dict[str, Any]:
        # Both body keys are emitted; older clients read messageText.
        return {
            "id": self.id,
            "sender": {
                "id": self.sender.id,
                "name": self.sender.name,
                "avatarUrl": self.sender.avatar_url,
            },
            "message": self.body,
            "messageText": self.body,
            "conversationId": self.conversation_id,
            "canReply": self.can_reply,
            "attachment": _attachment_payload(self.attachment),
            "createdAt": self.created_at.isoformat(),
        }


def _attachment_payload(attachment: Attachment | None) -> dict[str, Any] | None:
    if attachment is None:
        return None
    return {
        "id": attachment.id,
        "url": attachment.url,
        "name": attachment.name,
        "type": attachment.content_type,
        "size": attachment.size,
    }
