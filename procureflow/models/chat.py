"""
Chat message models

Messages follow the UI message format streamed to the browser: an ordered
list of parts, each tagged by ``type``. Field names are serialized in
camelCase (``toolCallId``, ``errorText``, ``mediaType``) so persisted chats
and streamed events share one shape.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Chat ids double as file names in the chat store
CHAT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"


TOOL_NAMES: tuple[str, ...] = (
    "searchProducts",
    "addToCart",
    "removeFromCart",
    "viewCart",
    "registerProduct",
    "addPaymentMethod",
    "changePaymentMethod",
    "removePaymentMethod",
    "addShippingAddress",
    "changeShippingAddress",
    "removeShippingAddress",
    "finalizePurchase",
)

ToolPartType = Literal[
    "tool-searchProducts",
    "tool-addToCart",
    "tool-removeFromCart",
    "tool-viewCart",
    "tool-registerProduct",
    "tool-addPaymentMethod",
    "tool-changePaymentMethod",
    "tool-removePaymentMethod",
    "tool-addShippingAddress",
    "tool-changeShippingAddress",
    "tool-removeShippingAddress",
    "tool-finalizePurchase",
]


class ToolState(str, Enum):
    """Lifecycle of a tool call part"""
    INPUT_STREAMING = "input-streaming"
    INPUT_AVAILABLE = "input-available"
    OUTPUT_AVAILABLE = "output-available"
    OUTPUT_ERROR = "output-error"

    @property
    def is_final(self) -> bool:
        return self in (ToolState.OUTPUT_AVAILABLE, ToolState.OUTPUT_ERROR)


TOOL_STATE_TRANSITIONS: dict[ToolState, frozenset[ToolState]] = {
    ToolState.INPUT_STREAMING: frozenset({
        ToolState.INPUT_STREAMING,
        ToolState.INPUT_AVAILABLE,
        ToolState.OUTPUT_ERROR,
    }),
    ToolState.INPUT_AVAILABLE: frozenset({
        ToolState.OUTPUT_AVAILABLE,
        ToolState.OUTPUT_ERROR,
    }),
    ToolState.OUTPUT_AVAILABLE: frozenset(),
    ToolState.OUTPUT_ERROR: frozenset(),
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextPart(_CamelModel):
    type: Literal["text"] = "text"
    text: str = ""
    state: Optional[Literal["streaming", "done"]] = None


class ReasoningPart(_CamelModel):
    type: Literal["reasoning"] = "reasoning"
    text: str = ""
    state: Optional[Literal["streaming", "done"]] = None


class FilePart(_CamelModel):
    type: Literal["file"] = "file"
    media_type: str
    url: str
    filename: Optional[str] = None


class ToolPart(_CamelModel):
    type: ToolPartType
    tool_call_id: str
    state: ToolState
    input: Optional[Any] = None
    output: Optional[Any] = None
    error_text: Optional[str] = None

    @property
    def tool_name(self) -> str:
        return self.type[len("tool-"):]

    def can_transition(self, new_state: ToolState) -> bool:
        return new_state in TOOL_STATE_TRANSITIONS[self.state]


Part = Annotated[
    Union[TextPart, ReasoningPart, FilePart, ToolPart],
    Field(discriminator="type"),
]

USER_PART_TYPES = (TextPart, FilePart)


def tool_part_type(tool_name: str) -> str:
    """Map a tool name to its part type, rejecting tools outside the toolset"""
    if tool_name not in TOOL_NAMES:
        raise ValueError(f"Unknown tool: {tool_name}")
    return f"tool-{tool_name}"


class ChatMessage(_CamelModel):
    """One user or assistant turn"""
    id: str
    role: Literal["user", "assistant"]
    parts: list[Part] = []

    @model_validator(mode="after")
    def _user_parts_are_content_only(self) -> "ChatMessage":
        if self.role == "user":
            for part in self.parts:
                if not isinstance(part, USER_PART_TYPES):
                    raise ValueError(f"User messages cannot contain '{part.type}' parts")
        return self

    @property
    def text(self) -> str:
        """Concatenated text of all text parts"""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    def tool_parts(self) -> list[ToolPart]:
        return [p for p in self.parts if isinstance(p, ToolPart)]

    def dump(self) -> dict:
        """Serialize in the UI message format"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChatRequest(BaseModel):
    """Request to send a chat message"""
    message: ChatMessage
    id: str = Field(pattern=CHAT_ID_PATTERN)


class CreateChatResponse(BaseModel):
    id: str


class ChatHistoryResponse(BaseModel):
    messages: list[dict]


class ConversationSummary(BaseModel):
    """Sidebar entry for a persisted chat"""
    id: str
    title: str
    snippet: str
    updated_at: str = Field(serialization_alias="updatedAt")


class ConversationsResponse(BaseModel):
    recent: list[ConversationSummary] = []
    older: list[ConversationSummary] = []
