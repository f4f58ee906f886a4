"""
Shopping Agent

AI procurement assistant that:
1. Searches and registers catalog products
2. Drives the client-held cart through tool calls
3. Walks the user through a mocked checkout

Replies are produced as UI message stream events so the client can render
text and tool calls while they arrive.
"""

import json
import logging
import uuid
from typing import Any, AsyncIterator, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from ..chat import events
from ..core.config import Settings
from ..core.errors import ToolExecutionError
from ..models.chat import ChatMessage, FilePart, TextPart, ToolPart, ToolState
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are ProcureFlow's helpful assistant. You help users find and purchase products in the procurement catalog.

When users ask about products:
1. Use the searchProducts tool to search the catalog. Do not list items yourself; let the UI render results.
2. When the user asks to add an item (optionally with a quantity), call the addToCart tool with the most relevant productId and quantity (default 1). Prefer product IDs from the latest search results if available.
3. Be concise. You may briefly confirm actions and suggest next steps like viewing the cart or checking out.
"""


def _new_id() -> str:
    return uuid.uuid4().hex[:16]


def _user_content(message: ChatMessage) -> list[dict]:
    content: list[dict] = []
    for part in message.parts:
        if isinstance(part, TextPart):
            if part.text:
                content.append({"type": "text", "text": part.text})
        elif isinstance(part, FilePart):
            if part.media_type.startswith("image/"):
                content.append({"type": "image_url", "image_url": {"url": part.url}})
            else:
                label = part.filename or "attachment"
                content.append({"type": "text", "text": f"[Attached file: {label} ({part.media_type})]"})
    return content


def _tool_result(part: ToolPart) -> str:
    if part.state == ToolState.OUTPUT_ERROR:
        return json.dumps({"error": part.error_text})
    return json.dumps(part.output)


def to_model_messages(messages: Sequence[ChatMessage]) -> list[dict]:
    """
    Convert UI messages into chat-completions messages.

    Assistant parts are grouped into blocks: text followed by the tool calls
    it issued, then the tool results. Tool calls that never finished are
    dropped, as are reasoning parts.
    """
    converted: list[dict] = []

    for message in messages:
        if message.role == "user":
            content = _user_content(message)
            if content:
                converted.append({"role": "user", "content": content})
            continue

        text: list[str] = []
        calls: list[ToolPart] = []

        def flush() -> None:
            if not text and not calls:
                return
            block: dict[str, Any] = {"role": "assistant", "content": "".join(text) or None}
            if calls:
                block["tool_calls"] = [
                    {
                        "id": c.tool_call_id,
                        "type": "function",
                        "function": {"name": c.tool_name, "arguments": json.dumps(c.input or {})},
                    }
                    for c in calls
                ]
            converted.append(block)
            for c in calls:
                converted.append({"role": "tool", "tool_call_id": c.tool_call_id, "content": _tool_result(c)})
            text.clear()
            calls.clear()

        for part in message.parts:
            if isinstance(part, TextPart):
                if calls:
                    flush()
                text.append(part.text)
            elif isinstance(part, ToolPart) and part.state.is_final:
                calls.append(part)
        flush()

    return converted


class ShoppingAgent:
    """
    AI Procurement Assistant

    Streams replies from an OpenAI chat model and executes the tool calls it
    requests, for up to ``max_steps`` model calls per turn.
    """

    def __init__(
        self,
        client: Any,
        tools: ToolRegistry,
        model: str = "gpt-5-nano",
        max_steps: int = 5,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.client = client
        self.tools = tools
        self.model = model
        self.max_steps = max_steps
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(cls, settings: Settings, tools: ToolRegistry) -> "ShoppingAgent":
        """Create an agent backed by the OpenAI API"""
        client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        return cls(client=client, tools=tools, model=settings.llm_model, max_steps=settings.max_tool_steps)

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()

    async def stream_reply(
        self,
        messages: Sequence[ChatMessage],
        message_id: Optional[str] = None,
    ) -> AsyncIterator[dict]:
        """
        Generate the assistant reply to a conversation as stream events.

        Model and network failures are logged and reported as a final
        ``error`` event rather than raised.
        """
        yield events.start(message_id or _new_id())

        model_messages = [{"role": "system", "content": self.system_prompt}]
        model_messages.extend(to_model_messages(messages))

        try:
            for _ in range(self.max_steps):
                yield events.start_step()
                calls: dict[int, dict] = {}
                text_id: Optional[str] = None
                text_chunks: list[str] = []

                stream = await self.client.chat.completions.create(
                    model=self.model,
                    messages=model_messages,
                    tools=self.tools.schemas(),
                    stream=True,
                )
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta

                    if delta.content:
                        if text_id is None:
                            text_id = _new_id()
                            yield events.text_start(text_id)
                        text_chunks.append(delta.content)
                        yield events.text_delta(text_id, delta.content)

                    for tool_call in delta.tool_calls or []:
                        call = calls.get(tool_call.index)
                        if call is None:
                            call = calls[tool_call.index] = {
                                "id": tool_call.id or _new_id(),
                                "name": tool_call.function.name if tool_call.function else "",
                                "arguments": "",
                            }
                            if call["name"] in self.tools:
                                yield events.tool_input_start(call["id"], call["name"])
                        fragment = tool_call.function.arguments if tool_call.function else None
                        if fragment:
                            call["arguments"] += fragment
                            if call["name"] in self.tools:
                                yield events.tool_input_delta(call["id"], fragment)

                if text_id is not None:
                    yield events.text_end(text_id)

                if not calls:
                    yield events.finish_step()
                    break

                ordered = [calls[i] for i in sorted(calls)]
                model_messages.append({
                    "role": "assistant",
                    "content": "".join(text_chunks) or None,
                    "tool_calls": [
                        {
                            "id": c["id"],
                            "type": "function",
                            "function": {"name": c["name"], "arguments": c["arguments"] or "{}"},
                        }
                        for c in ordered
                    ],
                })
                for call in ordered:
                    for event in self._run_tool(call, model_messages):
                        yield event
                yield events.finish_step()
            else:
                logger.info(f"Stopped after {self.max_steps} steps")

        except OpenAIError as e:
            logger.error(f"Model call failed: {e}", exc_info=True)
            yield events.error(str(e))
            return

        yield events.finish()

    def _run_tool(self, call: dict, model_messages: list[dict]) -> list[dict]:
        """Execute one requested tool call, returning its stream events"""
        emitted: list[dict] = []
        if call["name"] not in self.tools:
            logger.warning(f"Model requested unknown tool: {call['name']!r}")
            model_messages.append({
                "role": "tool",
                "tool_call_id": call["id"],
                "content": json.dumps({"error": f"Unknown tool: {call['name']}"}),
            })
            return emitted

        try:
            arguments = json.loads(call["arguments"]) if call["arguments"].strip() else {}
        except ValueError:
            error_text = f"Invalid JSON input for {call['name']}"
            emitted.append(events.tool_output_error(call["id"], error_text))
            model_messages.append({
                "role": "tool",
                "tool_call_id": call["id"],
                "content": json.dumps({"error": error_text}),
            })
            return emitted

        emitted.append(events.tool_input_available(call["id"], call["name"], arguments))
        try:
            output = self.tools.execute(call["name"], arguments)
        except ToolExecutionError as e:
            logger.warning(f"Tool {call['name']} failed: {e}")
            emitted.append(events.tool_output_error(call["id"], str(e)))
            content = {"error": str(e)}
        else:
            emitted.append(events.tool_output_available(call["id"], output))
            content = output

        model_messages.append({"role": "tool", "tool_call_id": call["id"], "content": json.dumps(content)})
        return emitted
