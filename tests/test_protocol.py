from __future__ import annotations

import asyncio
import json

from discord_mcp.discord_bot.access import AccessChecker
from discord_mcp.discord_bot.bot import DiscordBot
from discord_mcp.discord_bot.errors import ChannelNotFoundError
from discord_mcp.mcp.protocol import MCPProtocolHandler

from fakes import FakeChannel, FakeClient, make_history


class RecordingBot:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def send_message(self, channel_id, message):
        self.calls.append(("send_message", channel_id, message))
        return {"id": "555", "channel_id": channel_id}

    async def get_messages(self, channel_id, limit):
        self.calls.append(("get_messages", channel_id, limit))
        raise ChannelNotFoundError()


def _call(handler: MCPProtocolHandler, name: str, arguments) -> str:
    request = {"jsonrpc": "2.0", "id": 1, "method": "tools/call",
               "params": {"name": name, "arguments": arguments}}
    response = asyncio.run(handler.handle_request(request))
    assert "error" not in response
    content = response["result"]["content"]
    assert len(content) == 1 and content[0]["type"] == "text"
    return content[0]["text"]


def _scan_handler(history: list) -> MCPProtocolHandler:
    bot = DiscordBot(client=FakeClient({42: FakeChannel(42, history)}),
                     access=AccessChecker(allowed_guilds=[], allowed_channels=[]))
    return MCPProtocolHandler(bot)


def test_initialize() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    response = asyncio.run(handler.handle_request({"jsonrpc": "2.0", "id": 0, "method": "initialize"}))

    assert response["id"] == 0
    assert response["result"]["protocolVersion"] == "2024-11-05"
    assert response["result"]["serverInfo"]["name"] == "discord-mcp-server"


def test_tools_list() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    response = asyncio.run(handler.handle_request({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}))

    names = [tool["name"] for tool in response["result"]["tools"]]
    assert names == [
        "discord_send_message",
        "discord_send_image",
        "discord_get_messages",
        "discord_get_images",
        "discord_get_messages_advanced",
    ]


def test_unknown_method() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    response = asyncio.run(handler.handle_request({"jsonrpc": "2.0", "id": 3, "method": "resources/list"}))

    assert response["error"]["code"] == -32601


def test_notification_is_acknowledged() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    assert asyncio.run(handler.handle_request({"jsonrpc": "2.0", "method": "notifications/initialized"})) == {}


def test_send_message_text() -> None:
    bot = RecordingBot()
    handler = MCPProtocolHandler(bot)

    text = _call(handler, "discord_send_message", {"channel_id": 42, "message": "hi"})

    assert text == "Message sent successfully to channel 42. Message ID: 555"
    assert bot.calls == [("send_message", "42", "hi")]


def test_tool_failure_becomes_error_text() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    text = _call(handler, "discord_get_messages", {"channel_id": "42", "limit": 500})

    assert text == "Error: Channel not found or is not a text channel"


def test_missing_arguments() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    assert _call(handler, "discord_send_message", None) == "Error: Arguments are required"


def test_unknown_tool() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    assert _call(handler, "discord_delete_everything", {"channel_id": "1"}) == "Error: Unknown tool: discord_delete_everything"


def test_invalid_arguments() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    text = _call(handler, "discord_send_message", {"channel_id": "42"})

    assert text.startswith("Error:")
    assert "message" in text


def test_advanced_response_layout() -> None:
    history = make_history(10)
    history[2].content = "build ERROR on main"
    handler = _scan_handler(history)

    text = _call(handler, "discord_get_messages_advanced", {"channel_id": "42", "keyword": "error", "limit": 5})

    count_line, rest = text.split("\n\nSummary: ", 1)
    summary_json, messages_json = rest.split("\n\nMessages:\n", 1)
    assert count_line == "Retrieved 1 messages matching criteria from channel 42"
    summary = json.loads(summary_json)
    assert summary["total"] == 1
    assert summary["filters"]["keyword"] == "error"
    assert summary["pagination"]["total_fetched"] == 10
    assert summary["stop_reason"] == "exhausted"
    messages = json.loads(messages_json)
    assert [m["id"] for m in messages] == ["8"]


def test_advanced_unknown_channel() -> None:
    handler = _scan_handler([])

    text = _call(handler, "discord_get_messages_advanced", {"channel_id": "7"})

    assert text == "Error: Channel not found or is not a text channel"


def test_empty_arguments_reach_validation() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    text = _call(handler, "discord_send_message", {})

    assert text.startswith("Error:")
    assert text != "Error: Arguments are required"
    assert "channel_id" in text


class GatedChannel(FakeChannel):
    """Channel whose history fetches wait until the test lets them through"""

    def __init__(self, channel_id: int, history: list) -> None:
        super().__init__(channel_id, history)
        self.fetching = asyncio.Event()
        self.release = asyncio.Event()

    async def history(self, **kwargs):
        self.fetching.set()
        await self.release.wait()
        async for message in super().history(**kwargs):
            yield message


def test_cancelled_notification_stops_scan() -> None:
    async def run():
        channel = GatedChannel(42, make_history(500, lambda i: {"content": "nothing here"}))
        bot = DiscordBot(client=FakeClient({42: channel}),
                         access=AccessChecker(allowed_guilds=[], allowed_channels=[]))
        handler = MCPProtocolHandler(bot)
        call = asyncio.create_task(handler.handle_request({
            "jsonrpc": "2.0", "id": 7, "method": "tools/call",
            "params": {"name": "discord_get_messages_advanced",
                       "arguments": {"channel_id": "42", "keyword": "deploy"}},
        }))

        await channel.fetching.wait()
        assert 7 in handler.in_flight
        ack = await handler.handle_request({"jsonrpc": "2.0", "method": "notifications/cancelled",
                                            "params": {"requestId": 7, "reason": "user gave up"}})
        channel.release.set()
        response = await call
        return handler, channel, ack, response

    handler, channel, ack, response = asyncio.run(run())

    assert ack == {}
    summary = json.loads(response["result"]["content"][0]["text"].split("\n\nSummary: ", 1)[1].split("\n\nMessages:\n")[0])
    assert summary["stop_reason"] == "cancelled"
    assert summary["pagination"]["batches"] == 1
    assert len(channel.history_calls) == 1
    assert handler.in_flight == {}


def test_cancelling_unknown_request_is_ignored() -> None:
    handler = MCPProtocolHandler(RecordingBot())

    ack = asyncio.run(handler.handle_request({"jsonrpc": "2.0", "method": "notifications/cancelled",
                                              "params": {"requestId": 99}}))

    assert ack == {}
    assert handler.in_flight == {}
