"""Request-scoped access to the collaborators built by ``create_app``"""

from typing import Optional

from fastapi import Request

from ..core.config import Settings
from ..database.chats import ChatStore
from ..database.products import ProductDatabase
from ..services.conversation import ConversationService
from ..services.transcription import Transcriber


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_product_db(request: Request) -> ProductDatabase:
    return request.app.state.product_db


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def get_conversations(request: Request) -> Optional[ConversationService]:
    """Conversation service, or None when no LLM is configured"""
    return request.app.state.conversations


def get_transcriber(request: Request) -> Optional[Transcriber]:
    return request.app.state.transcriber
