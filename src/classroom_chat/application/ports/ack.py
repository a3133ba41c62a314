from __future__ import annotations

from typing import Awaitable, Callable

from classroom_chat.application.dto.message import OutgoingMessage
from classroom_chat.application.exceptions import AppError

# (error, provisional message), mirroring the client's node-style callback.
AckCallback = Callable[[AppError | None, OutgoingMessage | None], Awaitable[None]]
