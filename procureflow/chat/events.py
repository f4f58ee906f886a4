"""
UI message stream events

Each event is a JSON object with a ``type`` field, framed as a Server-Sent
Event (``data: <json>``). The stream ends with ``data: [DONE]``.
"""

import json
from typing import Any, AsyncIterable, AsyncIterator, Optional

from ..core.errors import StreamProtocolError

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "x-vercel-ai-ui-message-stream": "v1",
}

DONE = "[DONE]"


def start(message_id: str) -> dict:
    return {"type": "start", "messageId": message_id}


def start_step() -> dict:
    return {"type": "start-step"}


def finish_step() -> dict:
    return {"type": "finish-step"}


def finish() -> dict:
    return {"type": "finish"}


def error(error_text: str) -> dict:
    return {"type": "error", "errorText": error_text}


def text_start(part_id: str) -> dict:
    return {"type": "text-start", "id": part_id}


def text_delta(part_id: str, delta: str) -> dict:
    return {"type": "text-delta", "id": part_id, "delta": delta}


def text_end(part_id: str) -> dict:
    return {"type": "text-end", "id": part_id}


def reasoning_start(part_id: str) -> dict:
    return {"type": "reasoning-start", "id": part_id}


def reasoning_delta(part_id: str, delta: str) -> dict:
    return {"type": "reasoning-delta", "id": part_id, "delta": delta}


def reasoning_end(part_id: str) -> dict:
    return {"type": "reasoning-end", "id": part_id}


def tool_input_start(tool_call_id: str, tool_name: str) -> dict:
    return {"type": "tool-input-start", "toolCallId": tool_call_id, "toolName": tool_name}


def tool_input_delta(tool_call_id: str, delta: str) -> dict:
    return {"type": "tool-input-delta", "toolCallId": tool_call_id, "inputTextDelta": delta}


def tool_input_available(tool_call_id: str, tool_name: str, tool_input: Any) -> dict:
    return {
        "type": "tool-input-available",
        "toolCallId": tool_call_id,
        "toolName": tool_name,
        "input": tool_input,
    }


def tool_output_available(tool_call_id: str, output: Any) -> dict:
    return {"type": "tool-output-available", "toolCallId": tool_call_id, "output": output}


def tool_output_error(tool_call_id: str, error_text: str) -> dict:
    return {"type": "tool-output-error", "toolCallId": tool_call_id, "errorText": error_text}


# ==================== SSE framing ====================

def encode_sse(event: Optional[dict]) -> str:
    """Frame one event; ``None`` frames the end-of-stream marker"""
    payload = DONE if event is None else json.dumps(event, separators=(",", ":"))
    return f"data: {payload}\n\n"


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncIterator[dict]:
    """
    Parse SSE lines into events, stopping at the end-of-stream marker.

    Raises:
        StreamProtocolError: a data line is not a JSON object
    """
    async for line in lines:
        line = line.strip()
        if not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if data == DONE:
            return
        try:
            event = json.loads(data)
        except ValueError as e:
            raise StreamProtocolError(f"Malformed stream event: {data[:80]}") from e
        if not isinstance(event, dict) or "type" not in event:
            raise StreamProtocolError(f"Stream event without type: {data[:80]}")
        yield event
