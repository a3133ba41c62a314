from __future__ import annotations

from fastapi import APIRouter, Query

from classroom_chat.api.deps import CurrentPrincipal, UoWDep
from classroom_chat.api.v1.schemas.conversation import ConversationResponse
from classroom_chat.services import conversation_service

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    limit: int = Query(50, ge=1, le=200),
) -> list[ConversationResponse]:
    views = await conversation_service.list_user_conversations(
        principal.user_id, limit, uow,
    )
    return [ConversationResponse.from_view(v) for v in views]
