"""
Tests for the shopping agent's streaming tool loop.
"""

import pytest
from openai import OpenAIError

from conftest import FakeOpenAI, text_chunk, tool_chunk
from procureflow.chat.reducer import MessageStreamReducer
from procureflow.database.products import ProductDatabase
from procureflow.models.chat import ChatMessage, FilePart, TextPart, ToolPart, ToolState
from procureflow.services.shopping_agent import ShoppingAgent, to_model_messages
from procureflow.services.tools import build_toolset


def user(text, message_id="u1"):
    return ChatMessage(id=message_id, role="user", parts=[TextPart(text=text)])


async def collect(agent, messages):
    return [event async for event in agent.stream_reply(messages)]


@pytest.fixture
def fake():
    return FakeOpenAI()


@pytest.fixture
def agent(fake):
    return ShoppingAgent(client=fake, tools=build_toolset(ProductDatabase()), max_steps=3)


class TestToModelMessages:
    """UI message to chat-completions conversion."""

    def test_user_text_and_image(self):
        message = ChatMessage(id="u1", role="user", parts=[
            TextPart(text="What is this?"),
            FilePart(media_type="image/png", url="data:image/png;base64,AAA", filename="a.png"),
        ])
        converted = to_model_messages([message])
        assert converted == [{
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA"}},
            ],
        }]

    def test_assistant_tool_calls_and_results(self):
        message = ChatMessage(id="a1", role="assistant", parts=[
            TextPart(text="Searching."),
            ToolPart(type="tool-searchProducts", tool_call_id="c1", state=ToolState.OUTPUT_AVAILABLE,
                     input={"query": "usb"}, output={"count": 0}),
            ToolPart(type="tool-viewCart", tool_call_id="c2", state=ToolState.INPUT_STREAMING),
            TextPart(text="Nothing found."),
        ])
        converted = to_model_messages([message])
        assert [m["role"] for m in converted] == ["assistant", "tool", "assistant"]
        assert converted[0]["content"] == "Searching."
        assert converted[0]["tool_calls"][0]["function"] == {
            "name": "searchProducts",
            "arguments": '{"query": "usb"}',
        }
        assert converted[1] == {"role": "tool", "tool_call_id": "c1", "content": '{"count": 0}'}
        assert converted[2] == {"role": "assistant", "content": "Nothing found."}


class TestStreamReply:

    @pytest.mark.asyncio
    async def test_text_only(self, agent, fake):
        fake.script([text_chunk("Hello"), text_chunk("!")])
        stream = await collect(agent, [user("hi")])

        types = [e["type"] for e in stream]
        assert types == [
            "start", "start-step", "text-start", "text-delta", "text-delta",
            "text-end", "finish-step", "finish",
        ]
        request = fake.chat.completions.calls[0]
        assert request["stream"] is True
        assert request["messages"][0]["role"] == "system"
        assert request["messages"][-1]["content"] == [{"type": "text", "text": "hi"}]
        assert len(request["tools"]) == 12

    @pytest.mark.asyncio
    async def test_tool_call_then_answer(self, agent, fake):
        fake.script(
            [
                tool_chunk(0, call_id="call_1", name="addToCart", arguments='{"productId": '),
                tool_chunk(0, arguments='"1", "quantity": 2}'),
            ],
            [text_chunk("Added two cables.")],
        )
        stream = await collect(agent, [user("add two usb-c cables")])

        reducer = MessageStreamReducer()
        for event in stream:
            reducer.apply(event)
        tool_part, text_part = reducer.message.parts
        assert tool_part.type == "tool-addToCart"
        assert tool_part.state == ToolState.OUTPUT_AVAILABLE
        assert tool_part.input == {"productId": "1", "quantity": 2}
        assert tool_part.output["quantity"] == 2
        assert text_part.text == "Added two cables."
        assert reducer.finished

        second_call = fake.chat.completions.calls[1]["messages"]
        assert second_call[-2]["tool_calls"][0]["id"] == "call_1"
        assert second_call[-1]["role"] == "tool"
        assert second_call[-1]["tool_call_id"] == "call_1"

    @pytest.mark.asyncio
    async def test_invalid_tool_input_is_an_output_error(self, agent, fake):
        fake.script(
            [tool_chunk(0, call_id="call_1", name="searchProducts", arguments="{not json")],
            [text_chunk("Sorry.")],
        )
        stream = await collect(agent, [user("search")])
        errors = [e for e in stream if e["type"] == "tool-output-error"]
        assert errors == [{
            "type": "tool-output-error",
            "toolCallId": "call_1",
            "errorText": "Invalid JSON input for searchProducts",
        }]
        assert stream[-1]["type"] == "finish"

    @pytest.mark.asyncio
    async def test_tool_validation_error(self, agent, fake):
        fake.script(
            [tool_chunk(0, call_id="call_1", name="searchProducts", arguments='{"q": "usb"}')],
            [text_chunk("Let me retry.")],
        )
        stream = await collect(agent, [user("search")])
        reducer = MessageStreamReducer()
        for event in stream:
            reducer.apply(event)
        assert reducer.message.parts[0].state == ToolState.OUTPUT_ERROR
        assert "Invalid input for searchProducts" in reducer.message.parts[0].error_text

    @pytest.mark.asyncio
    async def test_unknown_tool_is_not_streamed(self, agent, fake):
        fake.script(
            [tool_chunk(0, call_id="call_1", name="deleteEverything", arguments="{}")],
            [text_chunk("I can't do that.")],
        )
        stream = await collect(agent, [user("delete")])
        assert not any(e["type"].startswith("tool-") for e in stream)
        assert fake.chat.completions.calls[1]["messages"][-1]["role"] == "tool"

    @pytest.mark.asyncio
    async def test_step_limit(self, agent, fake):
        looping = [tool_chunk(0, call_id=None, name="viewCart", arguments="{}")]
        fake.script(looping, looping, looping, looping)
        stream = await collect(agent, [user("cart")])
        assert len(fake.chat.completions.calls) == 3
        assert [e["type"] for e in stream].count("start-step") == 3
        assert stream[-1]["type"] == "finish"

    @pytest.mark.asyncio
    async def test_model_error_becomes_error_event(self, agent, fake):
        fake.chat.completions.error = OpenAIError("upstream unavailable")
        stream = await collect(agent, [user("hi")])
        assert stream[-1] == {"type": "error", "errorText": "upstream unavailable"}
        assert not any(e["type"] == "finish" for e in stream)
