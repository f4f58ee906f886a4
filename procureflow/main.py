"""
ProcureFlow Application

Chat-first procurement storefront: product catalog, mocked checkout, chat
persistence, audio transcription and an AI assistant that streams its
replies as UI message stream events.
"""

import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

from .core.config import Settings, get_settings
from .database.chats import ChatStore
from .database.products import ProductDatabase
from .routes import (
    products_router,
    checkout_router,
    chat_router,
    conversations_router,
    transcribe_router,
)
from .services.conversation import ConversationService
from .services.shopping_agent import ShoppingAgent
from .services.tools import build_toolset
from .services.transcription import Transcriber

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings: Settings = app.state.settings
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"LLM configured: {settings.llm_configured} (model={settings.llm_model})")
    logger.info(f"Chats directory: {settings.chats_dir}")

    yield

    logger.info(f"{settings.app_name} shutting down...")
    if app.state.conversations:
        await app.state.conversations.wait_idle()
    if app.state.agent:
        await app.state.agent.close()
    if app.state.transcriber:
        await app.state.transcriber.close()


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422"""
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_request", "detail": jsonable_encoder(exc.errors())},
    )


def create_app(
    settings: Optional[Settings] = None,
    product_db: Optional[ProductDatabase] = None,
    chat_store: Optional[ChatStore] = None,
    agent: Optional[ShoppingAgent] = None,
    transcriber: Optional[Transcriber] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators not passed in are created from settings. The assistant and
    transcriber are only created when an OpenAI key is configured; without
    one the chat and transcription endpoints answer 500.
    """
    settings = settings or get_settings()
    product_db = product_db or ProductDatabase()
    chat_store = chat_store or ChatStore(settings.chats_dir)

    if settings.llm_configured:
        agent = agent or ShoppingAgent.from_settings(settings, build_toolset(product_db))
        transcriber = transcriber or Transcriber.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Chat-first procurement storefront with an AI shopping assistant",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.product_db = product_db
    app.state.chat_store = chat_store
    app.state.agent = agent
    app.state.transcriber = transcriber
    app.state.conversations = ConversationService(chat_store, agent) if agent else None

    # CORS middleware - reflects the request origin
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(products_router)
    app.include_router(checkout_router)
    app.include_router(chat_router)
    app.include_router(conversations_router)
    app.include_router(transcribe_router)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "now": datetime.now(timezone.utc).isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "procureflow.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
