"""Chat session state for one conversation"""

import logging
import uuid
from enum import Enum
from typing import Optional, Sequence

import httpx

from ..chat.reducer import MessageStreamReducer
from ..core.errors import ChatRequestError, StreamProtocolError
from ..models.chat import ChatMessage, FilePart, TextPart
from .api_client import ProcureFlowClient
from .cart import CartStore
from .effects import CheckoutDetails, ToolEffects
from .ledger import ToolCallLedger
from .views import PurchaseStatus, RenderContext, View, render_message

logger = logging.getLogger(__name__)

CHAT_FAILED_MESSAGE = "Something went wrong. Please try again."


class ChatStatus(str, Enum):
    """Where the session is in a turn"""
    IDLE = "idle"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    ERROR = "error"


class ChatSession:
    """
    One open conversation.

    Holds the message list, folds streamed replies into it, and applies tool
    effects to the shared cart. Messages loaded when the session opened are
    rendered as history: their tool effects never run again.
    """

    def __init__(
        self,
        client: ProcureFlowClient,
        chat_id: str,
        initial_messages: Sequence[ChatMessage] = (),
        cart: Optional[CartStore] = None,
    ):
        self.client = client
        self.chat_id = chat_id
        self.messages: list[ChatMessage] = list(initial_messages)
        self.cart = cart or CartStore()
        self.checkout = CheckoutDetails()
        self.ledger = ToolCallLedger()
        self.effects = ToolEffects(
            self.cart,
            self.checkout,
            self.ledger,
            initial_message_ids=[m.id for m in self.messages],
        )
        self.purchase_status: dict[str, PurchaseStatus] = {}
        self.status = ChatStatus.IDLE
        self.error: Optional[str] = None

    @classmethod
    async def open(
        cls,
        client: ProcureFlowClient,
        chat_id: Optional[str] = None,
        cart: Optional[CartStore] = None,
    ) -> "ChatSession":
        """Open an existing chat, or create one when no id is given"""
        if chat_id is None:
            chat_id = await client.create_chat()
            messages: list[ChatMessage] = []
        else:
            messages = await client.load_chat(chat_id)
        logger.info(f"Opened chat {chat_id} with {len(messages)} messages")
        return cls(client, chat_id, messages, cart=cart)

    @property
    def busy(self) -> bool:
        return self.status in (ChatStatus.SUBMITTED, ChatStatus.STREAMING)

    async def submit(self, text: str = "", files: Sequence[FilePart] = ()) -> Optional[ChatMessage]:
        """
        Send a user message and fold the streamed reply into the session.

        Empty submissions, and submissions while a turn is in flight, are
        ignored. Returns the assistant message, or None when there was no
        reply (ignored, duplicate or failed).
        """
        if not text.strip() and not files:
            return None
        if self.busy:
            logger.warning("Submission ignored: a reply is still in progress")
            return None

        parts: list = [TextPart(text=text)] if text.strip() else []
        parts.extend(files)
        message = ChatMessage(id=uuid.uuid4().hex[:16], role="user", parts=parts)
        self.messages.append(message)
        self.status = ChatStatus.SUBMITTED
        self.error = None

        reducer: Optional[MessageStreamReducer] = None
        try:
            async for event in self.client.stream_chat(self.chat_id, message):
                if reducer is None:
                    reducer = MessageStreamReducer()
                    self.status = ChatStatus.STREAMING
                reducer.apply(event)
                if reducer.has_content:
                    self._upsert(reducer.message)
                    self.effects.apply([reducer.message])
        except (httpx.HTTPError, ChatRequestError, StreamProtocolError) as e:
            logger.error(f"Chat {self.chat_id}: reply failed: {e}")
            self.status = ChatStatus.ERROR
            self.error = CHAT_FAILED_MESSAGE
            return None

        if reducer is None:
            # Already answered: the server kept the earlier turn
            self.messages.remove(message)
            self.status = ChatStatus.IDLE
            return None

        if reducer.error_text:
            self.status = ChatStatus.ERROR
            self.error = reducer.error_text
        else:
            self.status = ChatStatus.IDLE
        return reducer.message if reducer.has_content else None

    def _upsert(self, message: ChatMessage) -> None:
        for index, existing in enumerate(self.messages):
            if existing.id == message.id:
                self.messages[index] = message
                return
        self.messages.append(message)

    # ==================== Checkout ====================

    def confirm_purchase(self, tool_call_id: str) -> bool:
        """Confirm a finalizePurchase summary; refused while the cart is empty"""
        if tool_call_id in self.purchase_status or len(self.cart) == 0:
            return False
        self.purchase_status[tool_call_id] = PurchaseStatus.CONFIRMED
        return True

    def cancel_purchase(self, tool_call_id: str) -> bool:
        if tool_call_id in self.purchase_status:
            return False
        self.purchase_status[tool_call_id] = PurchaseStatus.CANCELED
        return True

    # ==================== Rendering ====================

    def render(self) -> list[tuple[ChatMessage, list[View]]]:
        """View models for every message, in order"""
        rendered = []
        for message in self.messages:
            ctx = RenderContext(
                cart=self.cart,
                checkout=self.checkout,
                live=self.effects.is_live(message),
                purchase_status=self.purchase_status,
            )
            rendered.append((message, render_message(message, ctx)))
        return rendered
