from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from rapal.chat_service import ChatService
from rapal.deps import get_chat_service
from rapal.errors import ErrorReply
from rapal.schemas import ChatResponse, HealthResponse, ResetSessionResponse


router = APIRouter(tags=["chat"])

_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorReply},
    status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorReply},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorReply},
    status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorReply},
}


@router.get("/health", response_model=HealthResponse)
async def health_endpoint(
    service: ChatService = Depends(get_chat_service),
) -> HealthResponse:
    snapshot = service.health()
    return HealthResponse(
        status=snapshot.status,
        timestamp=snapshot.timestamp,
        sessions=snapshot.sessions,
    )


@router.post("/chat", response_model=ChatResponse, responses=_ERROR_RESPONSES)
async def chat_endpoint(
    raw_body: Optional[Dict[str, Any]] = Body(default=None),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """
    Send one message to the RAPal AI assistant.

    Body: {"message": "...", "sessionId": "..."}; ``sessionId`` defaults to
    "default". Failures are raised as ChatReplyError and rendered by the
    application's exception handler.
    """
    body = raw_body or {}
    result = await service.chat(body.get("message"), body.get("sessionId"))
    return ChatResponse(reply=result.reply, sessionId=result.session_id)


@router.post(
    "/reset-session",
    response_model=ResetSessionResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": ResetSessionResponse}},
)
async def reset_session_endpoint(
    raw_body: Optional[Dict[str, Any]] = Body(default=None),
    service: ChatService = Depends(get_chat_service),
):
    """
    Forget a session's conversation so the next message starts fresh.
    """
    body = raw_body or {}
    if service.reset(body.get("sessionId")):
        return ResetSessionResponse(message="Session berhasil direset")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ResetSessionResponse(message="Session tidak ditemukan").model_dump(),
    )


__all__ = [
    "chat_endpoint",
    "health_endpoint",
    "reset_session_endpoint",
    "router",
]
