from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Awaitable, Callable, Coroutine

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from classroom_chat.api.deps import get_verifier
from classroom_chat.api.middleware.request_id import new_request_id, request_id_ctx
from classroom_chat.application.dto.message import (
    OutgoingMessage,
    SendMessageCommand,
    StartConversationCommand,
)
from classroom_chat.application.dto.principal import Principal
from classroom_chat.application.exceptions import AppError, ForbiddenError, ValidationError
from classroom_chat.application.ports.ack import AckCallback
from classroom_chat.application.ports.channels import ChannelDirectory
from classroom_chat.application.uow import UnitOfWork
from classroom_chat.config import settings
from classroom_chat.domain.value_objects.enums import ChatEvent
from classroom_chat.infrastructure.db.uow import open_uow
from classroom_chat.infrastructure.ws.manager import ConnectionManager
from classroom_chat.infrastructure.ws.protocol import (
    CreateNewMessagePayload,
    NewMessagePayload,
    WsInbound,
    WsOutbound,
)
from classroom_chat.services import messaging_service, session_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()
_directory: ChannelDirectory = manager

# Each socket event gets its own session; swapped out in tests.
uow_scope: Callable[[], AbstractAsyncContextManager[UnitOfWork]] = open_uow

# Strong references to in-flight event tasks; they outlive their connection.
_tasks: set[asyncio.Task[None]] = set()


def get_manager() -> ConnectionManager:
    return manager


def get_directory() -> ChannelDirectory:
    return _directory


def use_directory(directory: ChannelDirectory) -> None:
    global _directory  # noqa: PLW0603
    _directory = directory


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


def _spawn(coro: Coroutine[Any, Any, None], name: str) -> None:
    task = asyncio.create_task(coro, name=name)
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    user_id = principal.user_id
    await manager.connect(websocket)
    await session_service.join_user_channel(websocket, user_id, get_directory())
    _spawn(_join_conversations(websocket, user_id), name=f"ws-join-{user_id}")

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{user_id}",
    )
    try:
        await _read_loop(websocket, principal)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for user %s", user_id)
    finally:
        heartbeat_task.cancel()
        manager.disconnect(websocket)


async def _join_conversations(ws: WebSocket, user_id: int) -> None:
    try:
        async with uow_scope() as uow:
            await session_service.join_conversation_channels(ws, user_id, uow, get_directory())
    except Exception:
        logger.exception("Could not open session to join channels for user %s", user_id)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(WsOutbound(type="pong", data={}).model_dump_json())
    except asyncio.CancelledError:
        pass
    except Exception:
        pass


async def _read_loop(ws: WebSocket, principal: Principal) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            await manager.send(ws, "error", {"code": "invalid_payload"})
            continue

        if msg.type == "ping":
            await manager.send(ws, "pong", {})

        elif msg.type == ChatEvent.NEW_MESSAGE:
            await _dispatch(ws, principal, msg, NewMessagePayload, _handle_new_message)

        elif msg.type == ChatEvent.CREATE_NEW_MESSAGE:
            await _dispatch(ws, principal, msg, CreateNewMessagePayload, _handle_create_new_message)

        else:
            await manager.send(ws, "error", {"code": "unknown_type", "type": msg.type})


async def _dispatch(
    ws: WebSocket,
    principal: Principal,
    msg: WsInbound,
    payload_model: type[NewMessagePayload] | type[CreateNewMessagePayload],
    handler: Callable[[Any, AckCallback], Awaitable[None]],
) -> None:
    """Validate an event payload and hand it to its handler in a new task."""
    ack = _make_ack(ws, msg.ack_id)
    try:
        payload = payload_model.model_validate(msg.data)
    except PydanticValidationError as exc:
        await ack(ValidationError(_describe(exc)), None)
        return

    sender = payload.sender.to_user()
    if sender.id != principal.user_id:
        await ack(ForbiddenError("Sender does not match the authenticated user"), None)
        return

    # The task copies the current context, so its log lines carry this id.
    token = request_id_ctx.set(new_request_id())
    try:
        _spawn(handler(payload.to_command(sender), ack), name=f"ws-{msg.type}-{sender.id}")
    finally:
        request_id_ctx.reset(token)


async def _handle_new_message(command: SendMessageCommand, ack: AckCallback) -> None:
    try:
        async with uow_scope() as uow:
            await messaging_service.send_message(command, ack, uow, get_directory())
    except Exception:
        logger.exception("NEW_MESSAGE handler failed")
        await ack(AppError(), None)


async def _handle_create_new_message(
    command: StartConversationCommand, ack: AckCallback,
) -> None:
    try:
        async with uow_scope() as uow:
            await messaging_service.create_conversation_and_send(
                command, ack, uow, get_directory(),
            )
    except Exception:
        logger.exception("CREATE_NEW_MESSAGE handler failed")
        await ack(AppError(), None)


def _make_ack(ws: WebSocket, ack_id: str | int | None) -> AckCallback:
    """Ack frames echo the client's ack_id; without one only errors are reported."""

    async def _ack(error: AppError | None, message: OutgoingMessage | None) -> None:
        if ack_id is None:
            if error is not None:
                await manager.send(ws, "error", {"code": error.kind, "detail": error.detail})
            return
        error_data = None if error is None else {"kind": error.kind, "detail": error.detail}
        await manager.send(
            ws,
            "ack",
            {
                "ack_id": ack_id,
                "error": error_data,
                "message": message.to_payload() if message else None,
            },
        )

    return _ack


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]
