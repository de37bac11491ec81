import asyncio
import json
import logging
from typing import Any, Dict

from ..models.discord_models import (
    GetImagesRequest,
    GetMessagesRequest,
    ScanQuery,
    SendImageRequest,
    SendMessageRequest,
)
from .tools import MCP_PROTOCOL_VERSION, MCP_SERVER_INFO, MCP_TOOLS

logger = logging.getLogger(__name__)


class MCPProtocolHandler:
    def __init__(self, discord_bot):
        self.discord_bot = discord_bot
        self.tool_handlers = {
            "discord_send_message": self._send_message,
            "discord_send_image": self._send_image,
            "discord_get_messages": self._get_messages,
            "discord_get_images": self._get_images,
            "discord_get_messages_advanced": self._get_messages_advanced,
        }
        # Cancellation events of running tools/call requests, keyed by request id
        self.in_flight: Dict[Any, asyncio.Event] = {}

    async def handle_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Handle incoming MCP protocol requests"""
        method = request.get("method")

        try:
            if method == "initialize":
                return self._handle_initialize(request)
            elif method == "ping":
                return self._result(request, {})
            elif method == "tools/list":
                return self._result(request, {"tools": MCP_TOOLS})
            elif method == "tools/call":
                return await self._handle_tools_call(request)
            elif method == "notifications/cancelled":
                self._handle_cancelled(request)
                return {}
            elif isinstance(method, str) and method.startswith("notifications/"):
                return {}  # Just acknowledge the notification
            else:
                logger.warning(f"Unknown method: {method}")
                return self._error(request, -32601, f"Unknown method: {method}")
        except Exception as e:
            logger.error(f"Error handling MCP request: {e}")
            return self._error(request, -32603, f"Internal error: {str(e)}")

    def _result(self, request: Dict[str, Any], result: Dict[str, Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request.get("id"), "result": result}

    def _error(self, request: Dict[str, Any], code: int, message: str) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request.get("id"), "error": {"code": code, "message": message}}

    def _handle_initialize(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP initialize request"""
        return self._result(request, {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {}
            },
            "serverInfo": MCP_SERVER_INFO
        })

    async def _handle_tools_call(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP tools/call request.

        Tool failures never become JSON-RPC errors: they are reported as a
        text result starting with `Error:`.
        """
        params = request.get("params") or {}
        tool_name = params.get("name")
        args = params.get("arguments")
        logger.info(f"Tool call: {tool_name}")

        request_id = request.get("id")
        cancel_event = asyncio.Event()
        if request_id is not None:
            self.in_flight[request_id] = cancel_event
        try:
            if args is None:
                raise ValueError("Arguments are required")
            handler = self.tool_handlers.get(tool_name)
            if handler is None:
                raise ValueError(f"Unknown tool: {tool_name}")
            text = await handler(args, cancel_event)
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            text = f"Error: {e}"
        finally:
            if request_id is not None:
                self.in_flight.pop(request_id, None)

        return self._result(request, {"content": [{"type": "text", "text": text}]})

    def _handle_cancelled(self, request: Dict[str, Any]):
        """Signal a running tool call that its client gave up on it"""
        params = request.get("params") or {}
        request_id = params.get("requestId")
        cancel_event = self.in_flight.get(request_id)
        if cancel_event is None:
            logger.debug(f"Cancellation for unknown or finished request {request_id}")
            return
        logger.info(f"Cancelling request {request_id}: {params.get('reason', 'no reason given')}")
        cancel_event.set()

    async def _send_message(self, args: Dict[str, Any], cancel_event: asyncio.Event) -> str:
        req = SendMessageRequest(**args)
        sent = await self.discord_bot.send_message(req.channel_id, req.message)
        return f"Message sent successfully to channel {req.channel_id}. Message ID: {sent['id']}"

    async def _send_image(self, args: Dict[str, Any], cancel_event: asyncio.Event) -> str:
        req = SendImageRequest(**args)
        sent = await self.discord_bot.send_image(req.channel_id, req.image_path, req.message)
        return f"Image sent successfully to channel {req.channel_id}. Message ID: {sent['id']}"

    async def _get_messages(self, args: Dict[str, Any], cancel_event: asyncio.Event) -> str:
        req = GetMessagesRequest(**args)
        messages = await self.discord_bot.get_messages(req.channel_id, req.limit)
        return f"Retrieved {len(messages)} messages from channel {req.channel_id}:\n\n{json.dumps(messages, indent=2)}"

    async def _get_images(self, args: Dict[str, Any], cancel_event: asyncio.Event) -> str:
        req = GetImagesRequest(**args)
        images = await self.discord_bot.get_images(req.channel_id, req.limit)
        return f"Retrieved {len(images)} images from channel {req.channel_id}:\n\n{json.dumps(images, indent=2)}"

    async def _get_messages_advanced(self, args: Dict[str, Any], cancel_event: asyncio.Event) -> str:
        query = ScanQuery(**args)
        result = await self.discord_bot.get_messages_advanced(query, cancel_event)
        return (
            f"Retrieved {len(result.messages)} messages matching criteria from channel {query.channel_id}\n\n"
            f"Summary: {json.dumps(result.summary, indent=2)}\n\n"
            f"Messages:\n{json.dumps(result.messages, indent=2)}"
        )
