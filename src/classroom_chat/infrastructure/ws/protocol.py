"""WebSocket frame envelopes and chat event payloads."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from classroom_chat.application.dto.message import (
    SendMessageCommand,
    StartConversationCommand,
)
from classroom_chat.domain.entities.attachment import Attachment
from classroom_chat.domain.entities.user import User


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # NEW_MESSAGE | CREATE_NEW_MESSAGE | ping
    data: dict[str, Any] = {}
    ack_id: str | int | None = None


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # ack | NEW_MESSAGE | FIRST_TIME_MESSAGE | error | pong
    data: dict[str, Any] = {}


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UserRef(_WireModel):
    id: int
    name: str = ""
    avatar_url: str | None = Field(None, alias="avatarUrl")

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, avatar_url=self.avatar_url)


class AttachmentIn(_WireModel):
    url: str
    name: str | None = None
    content_type: str | None = Field(None, alias="type")
    size: int | None = None

    def to_attachment(self) -> Attachment:
        return Attachment(
            id=None,
            url=self.url,
            name=self.name,
            content_type=self.content_type,
            size=self.size,
        )


class _MessageFields(_WireModel):
    sender: UserRef
    body: str = ""
    can_reply: bool | None = Field(None, alias="canReply")
    attachment: AttachmentIn | None = None
    created_at: datetime | None = Field(None, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _map_body_aliases(cls, data: Any) -> Any:
        # Clients send the text as "message" or "messageText"; "message" wins.
        if isinstance(data, dict) and "body" not in data:
            data = dict(data)
            data["body"] = data.get("message") or data.get("messageText") or ""
        return data

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _require_content(self) -> _MessageFields:
        if not self.body and self.attachment is None:
            raise ValueError("message text or attachment is required")
        return self

    @property
    def resolved_can_reply(self) -> bool:
        return True if self.can_reply is None else self.can_reply


class NewMessagePayload(_MessageFields):
    conversation_id: int = Field(alias="conversationId")

    def to_command(self, sender: User) -> SendMessageCommand:
        return SendMessageCommand(
            sender=sender,
            conversation_id=self.conversation_id,
            body=self.body,
            can_reply=self.resolved_can_reply,
            attachment=self.attachment.to_attachment() if self.attachment else None,
            created_at=self.created_at,
        )


class CreateNewMessagePayload(_MessageFields):
    classroom_id: int | None = Field(None, alias="classroomId")
    receivers: list[UserRef] = []

    def to_command(self, sender: User) -> StartConversationCommand:
        return StartConversationCommand(
            sender=sender,
            receivers=tuple(r.to_user() for r in self.receivers),
            body=self.body,
            classroom_id=self.classroom_id,
            can_reply=self.resolved_can_reply,
            attachment=self.attachment.to_attachment() if self.attachment else None,
            created_at=self.created_at,
        )
