"""Shared test fixtures."""
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import pytest

from classroom_chat.application.dto.message import OutgoingMessage
from classroom_chat.application.exceptions import AppError
from classroom_chat.domain.entities.attachment import Attachment
from classroom_chat.domain.entities.conversation import (
    Conversation,
    single_pair_key,
)
from classroom_chat.domain.entities.message import Message
from classroom_chat.domain.entities.participant import Participant
from classroom_chat.domain.entities.user import User
from classroom_chat.domain.value_objects.enums import ConversationType


@pytest.fixture
def alice() -> User:
    return User(id=1, name="A")


@pytest.fixture
def bob() -> User:
    return User(id=2, name="B")


@pytest.fixture
def carol() -> User:
    return User(id=3, name="C")


def make_conversation(
    *,
    conversation_id: int = 100,
    type: str = ConversationType.SINGLE,
    creator_id: int = 1,
    classroom_id: int | None = 7,
    participant_ids: tuple[int, ...] = (1, 2),
    name: str | None = None,
) -> Conversation:
    pair_key = None
    if type == ConversationType.SINGLE:
        pair_key = single_pair_key(classroom_id, *participant_ids)
    return Conversation(
        id=conversation_id,
        type=type,
        creator_id=creator_id,
        classroom_id=classroom_id,
        name=name,
        pair_key=pair_key,
        created_at=datetime.now(timezone.utc),
    )


class FakeStoreError(Exception):
    pass


@dataclass
class FakeConversationReader:
    _store: dict[int, Conversation] = field(default_factory=dict)
    _participants: list[Participant] = field(default_factory=list)
    fail_lookup: bool = False

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        return self._store.get(conversation_id)

    async def get_single_by_pair_key(self, pair_key: str) -> Conversation | None:
        if self.fail_lookup:
            raise FakeStoreError("lookup failed")
        for c in self._store.values():
            if c.type == ConversationType.SINGLE and c.pair_key == pair_key:
                return c
        return None

    async def list_ids_for_user(self, user_id: int) -> list[int]:
        return [p.conversation_id for p in self._participants if p.user_id == user_id]

    async def list_for_user(self, user_id: int, *, limit: int = 50) -> list[Conversation]:
        ids = await self.list_ids_for_user(user_id)
        convs = [self._store[i] for i in ids if i in self._store]
        return sorted(convs, key=lambda c: c.id, reverse=True)[:limit]


@dataclass
class FakeConversationWriter:
    _reader: FakeConversationReader
    _next_id: int = 500
    # Simulates a concurrent request creating the same pair between lookup and insert.
    race_winner: Conversation | None = None

    async def create(self, conversation: Conversation) -> Conversation:
        stored = replace(conversation, id=self._next_id)
        self._next_id += 1
        self._reader._store[stored.id] = stored
        return stored

    async def create_single_if_not_exists(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        if self.race_winner is not None:
            self._reader._store[self.race_winner.id] = self.race_winner
        for c in self._reader._store.values():
            if c.pair_key is not None and c.pair_key == conversation.pair_key:
                return c, False
        return await self.create(conversation), True


@dataclass
class FakeParticipantReader:
    _participants: list[Participant]

    async def is_participant(self, conversation_id: int, user_id: int) -> bool:
        return any(
            p.conversation_id == conversation_id and p.user_id == user_id
            for p in self._participants
        )

    async def list_user_ids(self, conversation_id: int) -> list[int]:
        return [p.user_id for p in self._participants if p.conversation_id == conversation_id]


@dataclass
class FakeParticipantWriter:
    _participants: list[Participant]

    async def add(self, participant: Participant) -> None:
        self._participants.append(participant)


@dataclass
class FakeMessageWriter:
    _messages: list[Message] = field(default_factory=list)
    _next_id: int = 900
    fail: bool = False
    # Invoked before the insert, to observe what already happened.
    on_create: Any = None

    async def create(self, message: Message) -> Message:
        if self.on_create is not None:
            self.on_create(message)
        if self.fail:
            raise FakeStoreError("insert failed")
        stored = replace(message, id=self._next_id)
        self._next_id += 1
        self._messages.append(stored)
        return stored


@dataclass
class FakeAttachmentWriter:
    _attachments: list[Attachment] = field(default_factory=list)
    _next_id: int = 300
    fail: bool = False

    async def create(self, attachment: Attachment) -> Attachment:
        if self.fail:
            raise FakeStoreError("attachment insert failed")
        stored = replace(attachment, id=self._next_id)
        self._next_id += 1
        self._attachments.append(stored)
        return stored


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    conversations: FakeConversationReader = field(default_factory=FakeConversationReader)
    conversations_w: FakeConversationWriter | None = None
    participants: FakeParticipantReader | None = None
    participants_w: FakeParticipantWriter | None = None
    messages_w: FakeMessageWriter = field(default_factory=FakeMessageWriter)
    attachments_w: FakeAttachmentWriter = field(default_factory=FakeAttachmentWriter)
    commits: int = 0

    def __post_init__(self) -> None:
        shared = self.conversations._participants
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.participants is None:
            self.participants = FakeParticipantReader(shared)
        if self.participants_w is None:
            self.participants_w = FakeParticipantWriter(shared)

    def add_conversation(self, conversation: Conversation, participant_ids: tuple[int, ...]) -> None:
        self.conversations._store[conversation.id] = conversation
        for user_id in participant_ids:
            self.conversations._participants.append(
                Participant(conversation.id, user_id, conversation.created_at)
            )

    @property
    def participant_rows(self) -> list[Participant]:
        return self.conversations._participants

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        pass


@asynccontextmanager
async def fake_uow_scope(uow: FakeUoW) -> AsyncIterator[FakeUoW]:
    yield uow


@dataclass
class FakeChannelDirectory:
    """Records directory calls."""
    subscriptions: list[tuple[Any, str]] = field(default_factory=list)
    fanouts: list[tuple[str, str]] = field(default_factory=list)
    broadcasts: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    fail_broadcast: bool = False

    async def subscribe(self, connection: Any, channel: str) -> None:
        self.subscriptions.append((connection, channel))

    async def subscribe_all_connections_of(self, identity_channel: str, target_channel: str) -> None:
        self.fanouts.append((identity_channel, target_channel))

    async def broadcast(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        if self.fail_broadcast:
            raise FakeStoreError("broadcast failed")
        self.broadcasts.append((channel, event, payload))


@dataclass
class AckRecorder:
    calls: list[tuple[AppError | None, OutgoingMessage | None]] = field(default_factory=list)

    async def __call__(self, error: AppError | None, message: OutgoingMessage | None) -> None:
        self.calls.append((error, message))

    @property
    def errors(self) -> list[AppError]:
        return [e for e, _ in self.calls if e is not None]

    @property
    def messages(self) -> list[OutgoingMessage]:
        return [m for _, m in self.calls if m is not None]


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def channels() -> FakeChannelDirectory:
    return FakeChannelDirectory()


@pytest.fixture
def ack() -> AckRecorder:
    return AckRecorder()


class FakeSocket:
    """Stands in for a starlette WebSocket in manager tests."""

    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict[str, Any]] = []
        self.broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, raw: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))
