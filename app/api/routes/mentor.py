"""
Mentor chat endpoint (NDJSON stream).
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.core.auth_dependency import get_current_user_id
from app.core.providers import get_llm_runner
from app.llm.runner import LLMRunner
from app.schemas.mentor import MentorChatRequest
from app.services.mentor_service import MentorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mentor", tags=["Mentor"])


@router.post("/chat")
def mentor_chat(
    request: MentorChatRequest,
    runner: LLMRunner = Depends(get_llm_runner),
    current_user_id: str = Depends(get_current_user_id),
):
    """
    Stream a mentor reply as newline-delimited JSON events.

    Modes: chat (answer `message`), explain (structured explanation of
    `context`), quiz (one multiple-choice question).
    """
    logger.info(f"Mentor chat: user={current_user_id}, mode={request.mode}")
    service = MentorService(runner)
    return StreamingResponse(
        service.stream(
            request.mode,
            request.context,
            message=request.message,
            history=request.chat_history,
            user_id=current_user_id,
        ),
        media_type="application/x-ndjson",
    )
