"""File-per-chat message storage"""

import asyncio
import json
import logging
import os
import re
import uuid
import weakref
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

from ..core.errors import ChatNotFoundError
from ..models.chat import CHAT_ID_PATTERN, ChatMessage, ConversationSummary, ConversationsResponse

logger = logging.getLogger(__name__)

_CHAT_ID = re.compile(CHAT_ID_PATTERN)

RECENT_WINDOW = timedelta(days=7)


def generate_chat_id() -> str:
    return uuid.uuid4().hex[:16]


class ChatStore:
    """
    Stores each chat as a JSON array of UI messages in ``<chats_dir>/<id>.json``.

    Saves overwrite the whole file. Writers inside one process serialize on
    ``lock_for(chat_id)``; nothing coordinates separate processes.
    """

    def __init__(self, chats_dir: Union[str, Path]):
        self.chats_dir = Path(chats_dir)
        # Entries vanish once no turn holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, chat_id: str) -> asyncio.Lock:
        """Get the lock guarding one chat's history"""
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = self._locks[chat_id] = asyncio.Lock()
        return lock

    def create_chat(self) -> str:
        """Create an empty chat and return its id"""
        chat_id = generate_chat_id()
        self._write(chat_id, [])
        logger.info(f"Created chat {chat_id}")
        return chat_id

    def exists(self, chat_id: str) -> bool:
        return _CHAT_ID.match(chat_id) is not None and self._path(chat_id).exists()

    def load_chat(self, chat_id: str) -> list[ChatMessage]:
        """
        Load a chat's messages, oldest first.

        Raises:
            ChatNotFoundError: unknown or malformed chat id
        """
        if not self.exists(chat_id):
            raise ChatNotFoundError(chat_id)
        with open(self._path(chat_id), "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [ChatMessage.model_validate(m) for m in raw]

    def save_chat(self, chat_id: str, messages: list[ChatMessage]) -> None:
        """Overwrite a chat's messages"""
        if _CHAT_ID.match(chat_id) is None:
            raise ChatNotFoundError(chat_id)
        self._write(chat_id, [m.dump() for m in messages])
        logger.debug(f"Saved chat {chat_id} ({len(messages)} messages)")

    def list_chats(self, now: Optional[datetime] = None) -> ConversationsResponse:
        """Summaries of persisted chats, most recently updated first"""
        now = now or datetime.now(timezone.utc)
        result = ConversationsResponse()
        if not self.chats_dir.exists():
            return result

        paths = sorted(
            self.chats_dir.glob("*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        for path in paths:
            chat_id = path.stem
            try:
                messages = self.load_chat(chat_id)
            except (ValueError, ChatNotFoundError):
                logger.warning(f"Skipping unreadable chat file {path.name}")
                continue

            updated = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            first_user = next((m.text for m in messages if m.role == "user" and m.text), "")
            last_text = next((m.text for m in reversed(messages) if m.text), "")
            summary = ConversationSummary(
                id=chat_id,
                title=(first_user or "New chat")[:60],
                snippet=last_text[:120],
                updated_at=updated.isoformat(),
            )
            if now - updated <= RECENT_WINDOW:
                result.recent.append(summary)
            else:
                result.older.append(summary)
        return result

    def _path(self, chat_id: str) -> Path:
        return self.chats_dir / f"{chat_id}.json"

    def _write(self, chat_id: str, payload: list) -> None:
        self.chats_dir.mkdir(parents=True, exist_ok=True)
        target = self._path(chat_id)
        tmp = target.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp, target)
