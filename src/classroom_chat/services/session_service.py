"""Channel membership of a freshly opened connection."""
from __future__ import annotations

import logging
from typing import Any

from classroom_chat.application.ports.channels import ChannelDirectory
from classroom_chat.application.uow import UnitOfWork
from classroom_chat.domain.value_objects.channels import (
    conversation_channel,
    user_channel,
)

logger = logging.getLogger(__name__)


async def join_user_channel(
    connection: Any,
    user_id: int,
    channels: ChannelDirectory,
) -> None:
    await channels.subscribe(connection, user_channel(user_id))


async def join_conversation_channels(
    connection: Any,
    user_id: int,
    uow: UnitOfWork,
    channels: ChannelDirectory,
) -> int:
    """Subscribe the connection to every conversation the user belongs to.

    Best-effort: runs in the background after connect, so a message broadcast
    before it finishes can be missed by this connection. Returns the number of
    channels joined (0 on failure).
    """
    try:
        conversation_ids = await uow.conversations.list_ids_for_user(user_id)
        for conversation_id in conversation_ids:
            await channels.subscribe(connection, conversation_channel(conversation_id))
    except Exception:
        logger.exception("Failed to join conversation channels for user %s", user_id)
        return 0
    logger.debug("User %s joined %d conversation channels", user_id, len(conversation_ids))
    return len(conversation_ids)
