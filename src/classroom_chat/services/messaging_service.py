"""Conversation creation, message persistence and fan-out.

Every entry point reports back through an ack callback: first with a
provisional copy of the message (before anything is stored), then with an
error if a later step fails. The early ack only means "received by the server".
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from classroom_chat.application.dto.conversation import ConversationView
from classroom_chat.application.dto.message import (
    OutgoingMessage,
    SendMessageCommand,
    StartConversationCommand,
)
from classroom_chat.application.exceptions import AppError, ValidationError
from classroom_chat.application.policies.permissions import assert_conversation_access
from classroom_chat.application.ports.ack import AckCallback
from classroom_chat.application.ports.channels import ChannelDirectory
from classroom_chat.application.uow import UnitOfWork
from classroom_chat.domain.entities.conversation import (
    DEFAULT_GROUP_NAME,
    Conversation,
    single_pair_key,
)
from classroom_chat.domain.entities.message import Message
from classroom_chat.domain.entities.participant import Participant
from classroom_chat.domain.value_objects.channels import (
    conversation_channel,
    user_channel,
)
from classroom_chat.domain.value_objects.enums import ChatEvent, ConversationType

logger = logging.getLogger(__name__)


async def send_message(
    command: SendMessageCommand,
    ack: AckCallback,
    uow: UnitOfWork,
    channels: ChannelDirectory,
) -> None:
    """Append a message to an existing conversation and broadcast it."""
    outgoing = OutgoingMessage.from_command(command, datetime.now(timezone.utc))
    await ack(None, outgoing)

    try:
        conversation = await uow.conversations.get_by_id(command.conversation_id)
        await assert_conversation_access(command.sender.id, conversation, uow.participants)
        stored = await _persist_message(outgoing, uow)
        await channels.broadcast(
            conversation_channel(command.conversation_id),
            ChatEvent.NEW_MESSAGE,
            stored.to_payload(),
        )
    except AppError as exc:
        logger.warning(
            "Message from user %s to conversation %s refused: %s",
            command.sender.id, command.conversation_id, exc.detail,
        )
        await ack(exc, None)
    except Exception:
        logger.exception(
            "Failed to send message to conversation %s", command.conversation_id,
        )
        await ack(AppError(), None)


async def create_conversation_and_send(
    command: StartConversationCommand,
    ack: AckCallback,
    uow: UnitOfWork,
    channels: ChannelDirectory,
) -> None:
    """Start a conversation with the given receivers.

    One receiver goes to a one-to-one conversation (reused when it exists),
    two or more always open a new group.
    """
    if not command.receivers:
        await ack(ValidationError("At least one receiver is required"), None)
    elif len(command.receivers) == 1:
        await _start_single_conversation(command, ack, uow, channels)
    else:
        await _start_group_conversation(command, ack, uow, channels)


async def _start_single_conversation(
    command: StartConversationCommand,
    ack: AckCallback,
    uow: UnitOfWork,
    channels: ChannelDirectory,
) -> None:
    sender = command.sender
    receiver = command.receivers[0]
    if receiver.id == sender.id:
        await ack(ValidationError("Cannot start a conversation with yourself"), None)
        return

    try:
        conversation, created = await _get_or_create_single(command, uow)
    except Exception:
        logger.exception(
            "Failed to resolve conversation between users %s and %s",
            sender.id, receiver.id,
        )
        await ack(AppError(), None)
        return

    if not created:
        # Existing thread (or one a concurrent request just created).
        await send_message(command.for_conversation(conversation.id), ack, uow, channels)
        return

    view = ConversationView(conversation, (sender.id, receiver.id))
    try:
        await _subscribe_participants(view, channels)
        stored = await _ack_and_persist(command, conversation.id, ack, uow)

        payload_for_sender = {
            "newMsg": stored.to_payload(),
            "newConvo": view.named(receiver.name).to_payload(),
        }
        await channels.broadcast(
            user_channel(sender.id), ChatEvent.FIRST_TIME_MESSAGE, payload_for_sender,
        )
        payload_for_receiver = {
            "newMsg": stored.to_payload(),
            "newConvo": view.named(sender.name).to_payload(),
        }
        await channels.broadcast(
            user_channel(receiver.id), ChatEvent.FIRST_TIME_MESSAGE, payload_for_receiver,
        )
    except Exception:
        logger.exception("Failed to send first message to conversation %s", conversation.id)
        await ack(AppError(), None)


async def _start_group_conversation(
    command: StartConversationCommand,
    ack: AckCallback,
    uow: UnitOfWork,
    channels: ChannelDirectory,
) -> None:
    sender = command.sender
    participant_ids = tuple(
        dict.fromkeys([sender.id, *(r.id for r in command.receivers)])
    )
    if len(participant_ids) < 2:
        await ack(ValidationError("A group needs at least two participants"), None)
        return

    try:
        conversation = await uow.conversations_w.create(
            Conversation(
                id=None,
                type=ConversationType.GROUP,
                creator_id=sender.id,
                classroom_id=command.classroom_id,
                name=DEFAULT_GROUP_NAME,
                pair_key=None,
                created_at=datetime.now(timezone.utc),
            )
        )
        await _add_participants(conversation, participant_ids, uow)
        await uow.commit()
        logger.info(
            "Created group conversation %s with %d participants",
            conversation.id, len(participant_ids),
        )

        view = ConversationView(conversation, participant_ids, DEFAULT_GROUP_NAME)
        await _subscribe_participants(view, channels)
        stored = await _ack_and_persist(command, conversation.id, ack, uow)

        await channels.broadcast(
            conversation_channel(conversation.id),
            ChatEvent.FIRST_TIME_MESSAGE,
            {"newMsg": stored.to_payload(), "newConvo": view.to_payload()},
        )
    except Exception:
        logger.exception("Failed to start group conversation for user %s", sender.id)
        await ack(AppError(), None)


async def _get_or_create_single(
    command: StartConversationCommand,
    uow: UnitOfWork,
) -> tuple[Conversation, bool]:
    sender = command.sender
    receiver = command.receivers[0]
    pair_key = single_pair_key(command.classroom_id, sender.id, receiver.id)

    existing = await uow.conversations.get_single_by_pair_key(pair_key)
    if existing is not None:
        return existing, False

    conversation, created = await uow.conversations_w.create_single_if_not_exists(
        Conversation(
            id=None,
            type=ConversationType.SINGLE,
            creator_id=sender.id,
            classroom_id=command.classroom_id,
            name=None,
            pair_key=pair_key,
            created_at=datetime.now(timezone.utc),
        )
    )
    if created:
        await _add_participants(conversation, (sender.id, receiver.id), uow)
        await uow.commit()
        logger.info(
            "Created single conversation %s between users %s and %s",
            conversation.id, sender.id, receiver.id,
        )
    return conversation, created


async def _add_participants(
    conversation: Conversation,
    user_ids: tuple[int, ...],
    uow: UnitOfWork,
) -> None:
    joined_at = conversation.created_at
    for user_id in user_ids:
        await uow.participants_w.add(
            Participant(conversation_id=conversation.id, user_id=user_id, joined_at=joined_at)
        )


async def _subscribe_participants(view: ConversationView, channels: ChannelDirectory) -> None:
    target = conversation_channel(view.conversation.id)
    for user_id in view.participant_ids:
        await channels.subscribe_all_connections_of(user_channel(user_id), target)


async def _ack_and_persist(
    command: StartConversationCommand,
    conversation_id: int,
    ack: AckCallback,
    uow: UnitOfWork,
) -> OutgoingMessage:
    outgoing = OutgoingMessage.from_command(
        command.for_conversation(conversation_id), datetime.now(timezone.utc),
    )
    await ack(None, outgoing)
    return await _persist_message(outgoing, uow)


async def _persist_message(outgoing: OutgoingMessage, uow: UnitOfWork) -> OutgoingMessage:
    """Store the attachment (if any) and the message; return the copy to broadcast."""
    if outgoing.attachment is not None:
        attachment = await uow.attachments_w.create(outgoing.attachment)
        outgoing = outgoing.with_attachment(attachment)

    message = await uow.messages_w.create(
        Message(
            id=None,
            conversation_id=outgoing.conversation_id,
            sender_id=outgoing.sender.id,
            body=outgoing.body,
            attachment_id=outgoing.attachment.id if outgoing.attachment else None,
            can_reply=outgoing.can_reply,
            created_at=outgoing.created_at,
        )
    )
    await uow.commit()
    return outgoing.with_id(message.id)
