"""Chat API routes"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ..chat.events import STREAM_HEADERS
from ..core.config import Settings
from ..core.errors import ChatNotFoundError
from ..models.chat import (
    ChatHistoryResponse,
    ChatRequest,
    ConversationsResponse,
    CreateChatResponse,
)
from ..database.chats import ChatStore
from ..services.conversation import ConversationService
from .dependencies import get_app_settings, get_chat_store, get_conversations

logger = logging.getLogger(__name__)

MISSING_KEY_ERROR = "Server not configured: missing OPENAI_API_KEY"

router = APIRouter(prefix="/api/chat", tags=["Chat"])
conversations_router = APIRouter(prefix="/api/conversations", tags=["Chat"])


@router.post("")
async def send_message(
    request: ChatRequest,
    settings: Settings = Depends(get_app_settings),
    conversations: Optional[ConversationService] = Depends(get_conversations),
):
    """
    Send a user message and stream the assistant reply.

    The reply is a UI message stream over Server-Sent Events. A message that
    was already answered gets 204 and no new reply.
    """
    if not settings.llm_configured or conversations is None:
        return JSONResponse(status_code=500, content={"error": MISSING_KEY_ERROR})

    stream = await conversations.begin_turn(request.id, request.message)
    if stream is None:
        return Response(status_code=204)

    return StreamingResponse(stream, media_type="text/event-stream", headers=STREAM_HEADERS)


@router.post("/create", response_model=CreateChatResponse)
async def create_chat(chat_store: ChatStore = Depends(get_chat_store)):
    """Create an empty chat"""
    try:
        chat_id = chat_store.create_chat()
    except OSError as e:
        logger.error(f"Failed to create chat: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "failed-to-create"})
    return CreateChatResponse(id=chat_id)


@router.get("/{chat_id}", response_model=ChatHistoryResponse)
async def get_chat(chat_id: str, chat_store: ChatStore = Depends(get_chat_store)):
    """Load a chat's messages"""
    try:
        messages = chat_store.load_chat(chat_id)
    except (ChatNotFoundError, ValueError):
        return JSONResponse(status_code=404, content={"messages": []})
    return ChatHistoryResponse(messages=[m.dump() for m in messages])


@conversations_router.get("")
async def list_conversations(chat_store: ChatStore = Depends(get_chat_store)):
    """Persisted chats split into recent (last 7 days) and older"""
    result: ConversationsResponse = chat_store.list_chats()
    return result.model_dump(by_alias=True)
