from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class ErrorReply(BaseModel):
    """
    Error payload returned by the chat endpoints.

    Every failure carries a human-readable ``reply`` so the frontend can
    render it in the chat window without branching on content type:
    {
        "reply": "Pesan tidak boleh kosong.",
        "error": "..."   # development mode only
    }
    """

    reply: str = Field(..., description="Human-readable message for the chat window")
    error: Optional[str] = Field(
        default=None, description="Underlying error detail (development only)"
    )


class ChatReplyError(Exception):
    """Base class for failures that map to a JSON ``{"reply": ...}`` response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    reply: str = "Maaf, terjadi kesalahan pada sistem. Silakan coba lagi."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(detail or self.reply)


class InvalidMessageError(ChatReplyError):
    status_code = status.HTTP_400_BAD_REQUEST
    reply = "Pesan tidak valid. Silakan kirim pesan yang benar."


class EmptyMessageError(ChatReplyError):
    status_code = status.HTTP_400_BAD_REQUEST
    reply = "Pesan tidak boleh kosong."


class MessageTooLongError(ChatReplyError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, max_length: int, detail: Optional[str] = None) -> None:
        self.max_length = max_length
        self.reply = f"Pesan terlalu panjang. Maksimal {max_length} karakter."
        super().__init__(detail)


class InvalidSessionIdError(ChatReplyError):
    status_code = status.HTTP_400_BAD_REQUEST
    reply = "ID sesi tidak valid."


class RateLimitExceededError(ChatReplyError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    reply = "Terlalu banyak pesan. Silakan tunggu beberapa saat."


class UpstreamQuotaError(ChatReplyError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    reply = "Maaf, sistem sedang sibuk. Silakan coba lagi dalam beberapa saat."


class ContentPolicyError(ChatReplyError):
    status_code = status.HTTP_400_BAD_REQUEST
    reply = "Maaf, pesan Anda tidak dapat diproses karena melanggar kebijakan konten."


class GenerationError(ChatReplyError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reply = "Maaf, terjadi kesalahan pada sistem. Silakan coba lagi."


def classify_generation_error(exc: BaseException) -> ChatReplyError:
    """
    Map an error raised while generating a reply onto a ChatReplyError.

    Quota exhaustion is checked before safety blocks; anything else falls
    back to the generic GenerationError.
    """
    if isinstance(exc, ChatReplyError):
        return exc
    description = str(exc)
    lowered = description.lower()
    if "quota" in lowered:
        return UpstreamQuotaError(description)
    if "safety" in lowered:
        return ContentPolicyError(description)
    return GenerationError(description or exc.__class__.__name__)


def reply_error_response(
    exc: ChatReplyError, *, expose_detail: bool = False
) -> JSONResponse:
    """
    Render a ChatReplyError as JSON. The ``error`` field is only filled for
    server-side failures and only when ``expose_detail`` is set.
    """
    payload = ErrorReply(reply=exc.reply)
    if expose_detail and exc.status_code >= 500 and exc.detail:
        payload.error = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=payload.model_dump(exclude_none=True),
    )


__all__ = [
    "ChatReplyError",
    "ContentPolicyError",
    "EmptyMessageError",
    "ErrorReply",
    "GenerationError",
    "InvalidMessageError",
    "InvalidSessionIdError",
    "MessageTooLongError",
    "RateLimitExceededError",
    "UpstreamQuotaError",
    "classify_generation_error",
    "reply_error_response",
]
