# ProcureFlow Models

from .product import Product, ProductListResponse, RegisterProductResponse
from .checkout import CheckoutLine, CheckoutRequest, CheckoutResponse
from .chat import (
    TOOL_NAMES,
    ToolState,
    TextPart,
    ReasoningPart,
    FilePart,
    ToolPart,
    Part,
    ChatMessage,
    ChatRequest,
    CreateChatResponse,
    ChatHistoryResponse,
    ConversationSummary,
    ConversationsResponse,
)
from .transcription import TranscriptionSegment, TranscriptionResponse

__all__ = [
    "Product",
    "ProductListResponse",
    "RegisterProductResponse",
    "CheckoutLine",
    "CheckoutRequest",
    "CheckoutResponse",
    "TOOL_NAMES",
    "ToolState",
    "TextPart",
    "ReasoningPart",
    "FilePart",
    "ToolPart",
    "Part",
    "ChatMessage",
    "ChatRequest",
    "CreateChatResponse",
    "ChatHistoryResponse",
    "ConversationSummary",
    "ConversationsResponse",
    "TranscriptionSegment",
    "TranscriptionResponse",
]
