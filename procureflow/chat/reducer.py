"""
Streaming message reducer

Folds UI message stream events into a single assistant ``ChatMessage``.
Parts are appended in arrival order and then updated in place: text and
reasoning parts are addressed by their stream id, tool parts by their
tool-call id. Both the server (to persist the finished reply) and the client
(to render the reply while it streams) use this reducer.
"""

import uuid
from typing import Any, Callable, Optional, Union

from pydantic_core import from_json

from ..core.errors import StreamProtocolError
from ..models.chat import (
    ChatMessage,
    ReasoningPart,
    TextPart,
    ToolPart,
    ToolState,
    tool_part_type,
)


def parse_partial_json(text: str) -> Optional[Any]:
    """
    Best-effort parse of a JSON document that is still being streamed.

    Fields parsed so far are kept and an unterminated string value is
    closed. Returns None when nothing usable can be parsed.
    """
    if not text.strip():
        return None
    try:
        return from_json(text, allow_partial="trailing-strings")
    except ValueError:
        return None


class MessageStreamReducer:
    """Builds one assistant message from its stream of events"""

    def __init__(self, message_id: Optional[str] = None):
        self.message = ChatMessage(id=message_id or "", role="assistant", parts=[])
        self.finished = False
        self.error_text: Optional[str] = None
        self._content_index: dict[str, int] = {}
        self._tool_index: dict[str, int] = {}
        self._tool_input_text: dict[str, str] = {}

    @property
    def message_id(self) -> str:
        return self.message.id

    @property
    def has_content(self) -> bool:
        return bool(self.message.parts)

    def apply(self, event: dict) -> ChatMessage:
        """
        Apply one stream event.

        Raises:
            StreamProtocolError: unknown event type, unknown part id, or an
                illegal tool state transition
        """
        event_type = event.get("type")
        handler = self._HANDLERS.get(event_type)
        if handler is None:
            raise StreamProtocolError(f"Unknown stream event type: {event_type!r}")
        handler(self, event)
        return self.message

    # ==================== Message lifecycle ====================

    def _on_start(self, event: dict) -> None:
        message_id = event.get("messageId")
        if not message_id:
            return
        if self.message.id and self.message.id != message_id:
            raise StreamProtocolError(
                f"Message id changed mid-stream: {self.message.id} -> {message_id}"
            )
        self.message.id = message_id

    def _on_step(self, event: dict) -> None:
        pass

    def _on_finish(self, event: dict) -> None:
        self.finished = True

    def _on_error(self, event: dict) -> None:
        self.error_text = event.get("errorText") or "Unknown error"

    def _ensure_id(self) -> None:
        if not self.message.id:
            self.message.id = uuid.uuid4().hex[:16]

    # ==================== Text & reasoning ====================

    def _content_start(self, event: dict, factory: Callable[[], Union[TextPart, ReasoningPart]]) -> None:
        self._ensure_id()
        part_id = self._require(event, "id")
        if part_id in self._content_index:
            raise StreamProtocolError(f"Duplicate part id: {part_id}")
        self._content_index[part_id] = len(self.message.parts)
        self.message.parts.append(factory())

    def _content_part(self, event: dict) -> Union[TextPart, ReasoningPart]:
        part_id = self._require(event, "id")
        if part_id not in self._content_index:
            raise StreamProtocolError(f"Unknown part id: {part_id}")
        part = self.message.parts[self._content_index[part_id]]
        # "text-delta" must address a text part, "reasoning-end" a reasoning part
        expected = event["type"].split("-", 1)[0]
        if part.type != expected:
            raise StreamProtocolError(
                f"'{event['type']}' event addresses a {part.type} part: {part_id}"
            )
        return part

    def _on_text_start(self, event: dict) -> None:
        self._content_start(event, lambda: TextPart(text="", state="streaming"))

    def _on_reasoning_start(self, event: dict) -> None:
        self._content_start(event, lambda: ReasoningPart(text="", state="streaming"))

    def _on_content_delta(self, event: dict) -> None:
        part = self._content_part(event)
        part.text += event.get("delta", "")

    def _on_content_end(self, event: dict) -> None:
        self._content_part(event).state = "done"

    # ==================== Tools ====================

    def _new_tool_part(self, tool_call_id: str, tool_name: str, state: ToolState) -> ToolPart:
        self._ensure_id()
        if tool_call_id in self._tool_index:
            raise StreamProtocolError(f"Duplicate tool call id: {tool_call_id}")
        try:
            part_type = tool_part_type(tool_name)
        except ValueError as e:
            raise StreamProtocolError(str(e)) from e
        part = ToolPart(type=part_type, tool_call_id=tool_call_id, state=state)
        self._tool_index[tool_call_id] = len(self.message.parts)
        self.message.parts.append(part)
        return part

    def _tool_part(self, tool_call_id: str) -> ToolPart:
        if tool_call_id not in self._tool_index:
            raise StreamProtocolError(f"Unknown tool call id: {tool_call_id}")
        return self.message.parts[self._tool_index[tool_call_id]]

    @staticmethod
    def _advance(part: ToolPart, new_state: ToolState) -> None:
        if not part.can_transition(new_state):
            raise StreamProtocolError(
                f"Illegal transition for {part.tool_call_id}: {part.state.value} -> {new_state.value}"
            )
        part.state = new_state

    def _on_tool_input_start(self, event: dict) -> None:
        tool_call_id = self._require(event, "toolCallId")
        self._new_tool_part(tool_call_id, self._require(event, "toolName"), ToolState.INPUT_STREAMING)
        self._tool_input_text[tool_call_id] = ""

    def _on_tool_input_delta(self, event: dict) -> None:
        tool_call_id = self._require(event, "toolCallId")
        part = self._tool_part(tool_call_id)
        self._advance(part, ToolState.INPUT_STREAMING)
        text = self._tool_input_text.get(tool_call_id, "") + event.get("inputTextDelta", "")
        self._tool_input_text[tool_call_id] = text
        partial = parse_partial_json(text)
        if partial is not None:
            part.input = partial

    def _on_tool_input_available(self, event: dict) -> None:
        tool_call_id = self._require(event, "toolCallId")
        if tool_call_id in self._tool_index:
            part = self._tool_part(tool_call_id)
            self._advance(part, ToolState.INPUT_AVAILABLE)
        else:
            part = self._new_tool_part(
                tool_call_id, self._require(event, "toolName"), ToolState.INPUT_AVAILABLE
            )
        part.input = event.get("input")
        self._tool_input_text.pop(tool_call_id, None)

    def _on_tool_output_available(self, event: dict) -> None:
        part = self._tool_part(self._require(event, "toolCallId"))
        self._advance(part, ToolState.OUTPUT_AVAILABLE)
        part.output = event.get("output")

    def _on_tool_output_error(self, event: dict) -> None:
        part = self._tool_part(self._require(event, "toolCallId"))
        self._advance(part, ToolState.OUTPUT_ERROR)
        part.error_text = event.get("errorText") or "Tool execution failed"

    @staticmethod
    def _require(event: dict, key: str) -> Any:
        value = event.get(key)
        if value is None or value == "":
            raise StreamProtocolError(f"'{event.get('type')}' event is missing '{key}'")
        return value

    _HANDLERS: dict[str, Callable[["MessageStreamReducer", dict], None]] = {
        "start": _on_start,
        "start-step": _on_step,
        "finish-step": _on_step,
        "finish": _on_finish,
        "error": _on_error,
        "text-start": _on_text_start,
        "text-delta": _on_content_delta,
        "text-end": _on_content_end,
        "reasoning-start": _on_reasoning_start,
        "reasoning-delta": _on_content_delta,
        "reasoning-end": _on_content_end,
        "tool-input-start": _on_tool_input_start,
        "tool-input-delta": _on_tool_input_delta,
        "tool-input-available": _on_tool_input_available,
        "tool-output-available": _on_tool_output_available,
        "tool-output-error": _on_tool_output_error,
    }
