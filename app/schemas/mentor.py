"""
Pydantic schemas for the mentor chat stream.
"""
from typing import List, Literal

from pydantic import Field

from app.schemas.base import CamelModel


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    text: str


class MentorChatRequest(CamelModel):
    message: str = Field("", max_length=4000)
    context: str = Field(..., min_length=1, max_length=500, description="Topic the mentor specialises in")
    mode: Literal["chat", "explain", "quiz"] = "chat"
    chat_history: List[ChatTurn] = Field(default_factory=list)
