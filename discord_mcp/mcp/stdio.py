"""
MCP stdio transport.
Framing comes from the MCP SDK's stdio server; every JSON-RPC message is
dispatched to the shared MCPProtocolHandler.
"""
import logging

import anyio
from mcp.server.stdio import stdio_server
from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage, JSONRPCNotification, JSONRPCRequest

logger = logging.getLogger(__name__)


class StdioTransport:
    def __init__(self, mcp_handler):
        self.mcp_handler = mcp_handler

    async def handle_message(self, item, write_stream):
        # The SDK hands over lines it could not parse as exceptions
        if isinstance(item, Exception):
            logger.warning(f"Discarding unparseable message: {item}")
            return

        message = item.message.root
        if isinstance(message, JSONRPCNotification):
            await self.mcp_handler.handle_request(message.model_dump(by_alias=True, exclude_none=True))
            return
        if not isinstance(message, JSONRPCRequest):
            # Responses from the client, nothing to answer
            return

        response = await self.mcp_handler.handle_request(message.model_dump(by_alias=True, exclude_none=True))
        await write_stream.send(SessionMessage(JSONRPCMessage.model_validate(response)))

    async def serve_streams(self, read_stream, write_stream):
        """Serve until the read stream is closed; requests run concurrently"""
        async with write_stream:
            async with anyio.create_task_group() as tg:
                async with read_stream:
                    async for item in read_stream:
                        tg.start_soon(self.handle_message, item, write_stream)

    async def serve(self, stdin=None, stdout=None):
        """Serve requests until stdin is closed"""
        logger.info("Discord MCP server listening on stdio")
        async with stdio_server(stdin, stdout) as (read_stream, write_stream):
            await self.serve_streams(read_stream, write_stream)
        logger.info("stdin closed, stopping stdio transport")
