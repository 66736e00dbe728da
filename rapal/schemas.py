from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    reply: str = Field(..., description="Model reply text")
    sessionId: str = Field(..., description="Session the reply belongs to")


class ResetSessionResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp")
    sessions: int = Field(..., description="Number of live sessions", ge=0)


class NotFoundResponse(BaseModel):
    error: str
    path: str


__all__ = [
    "ChatResponse",
    "HealthResponse",
    "NotFoundResponse",
    "ResetSessionResponse",
]
