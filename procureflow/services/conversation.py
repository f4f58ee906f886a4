"""
Chat turns

A turn loads the persisted history, drops duplicate submissions, and runs
the assistant in a background task. Events flow to the HTTP response through
a queue; the task saves the conversation when generation ends, whether or
not the client is still reading.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from ..chat import events
from ..chat.events import encode_sse
from ..chat.history import is_duplicate_submission
from ..chat.reducer import MessageStreamReducer
from ..core.errors import ChatNotFoundError, StreamProtocolError
from ..database.chats import ChatStore
from ..models.chat import ChatMessage
from .shopping_agent import ShoppingAgent

logger = logging.getLogger(__name__)


class ConversationService:
    """Runs chat turns against persisted history"""

    def __init__(self, chat_store: ChatStore, agent: ShoppingAgent):
        self.chat_store = chat_store
        self.agent = agent
        self._tasks: set[asyncio.Task] = set()

    async def begin_turn(self, chat_id: str, message: ChatMessage) -> Optional[AsyncIterator[str]]:
        """
        Start answering a user message.

        Returns:
            An async iterator of SSE frames, or None when the message was
            already answered and no new reply should be generated.
        """
        lock = self.chat_store.lock_for(chat_id)
        await lock.acquire()
        try:
            try:
                history = await asyncio.to_thread(self.chat_store.load_chat, chat_id)
            except ChatNotFoundError:
                history = []

            if is_duplicate_submission(history, message):
                logger.info(f"Duplicate submission {message.id} for chat {chat_id}, skipping")
                lock.release()
                return None

            history.append(message)
            queue: asyncio.Queue = asyncio.Queue()
            task = asyncio.create_task(self._run(chat_id, history, queue, lock))
        except BaseException:
            if lock.locked():
                lock.release()
            raise

        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return self._drain(queue)

    async def wait_idle(self) -> None:
        """Wait for in-flight turns to finish persisting"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(
        self,
        chat_id: str,
        history: list[ChatMessage],
        queue: asyncio.Queue,
        lock: asyncio.Lock,
    ) -> None:
        reducer = MessageStreamReducer()
        try:
            async for event in self.agent.stream_reply(history):
                reducer.apply(event)
                queue.put_nowait(event)
        except StreamProtocolError as e:
            logger.error(f"Chat {chat_id}: invalid stream event: {e}", exc_info=True)
            queue.put_nowait(events.error(str(e)))
        except Exception as e:
            logger.error(f"Chat {chat_id}: generation failed: {e}", exc_info=True)
            queue.put_nowait(events.error("An error occurred."))
        finally:
            try:
                messages = list(history)
                if reducer.has_content:
                    messages.append(reducer.message)
                await asyncio.to_thread(self.chat_store.save_chat, chat_id, messages)
            except Exception as e:
                logger.error(f"Chat {chat_id}: failed to save history: {e}", exc_info=True)
            finally:
                lock.release()
                queue.put_nowait(None)

    @staticmethod
    async def _drain(queue: asyncio.Queue) -> AsyncIterator[str]:
        while True:
            event = await queue.get()
            if event is None:
                yield encode_sse(None)
                return
            yield encode_sse(event)
