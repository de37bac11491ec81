import asyncio
import logging
from fastapi import FastAPI
import uvicorn

from discord_mcp.discord_bot.bot import DiscordBot
from discord_mcp.mcp.protocol import MCPProtocolHandler
from discord_mcp.mcp.stdio import StdioTransport
from discord_mcp.api.routes import APIRoutes
from discord_mcp.api.middleware import MiddlewareSetup
from discord_mcp.config.settings import settings

logger = logging.getLogger(__name__)

class DiscordMCPServer:
    def __init__(self):
        self.discord_bot = DiscordBot()
        self.mcp_handler = MCPProtocolHandler(self.discord_bot)

    def create_app(self) -> FastAPI:
        app = FastAPI(title="Discord MCP Server", version="1.0.0")
        MiddlewareSetup(app)
        APIRoutes(app, self.discord_bot, self.mcp_handler)
        return app

    async def run_stdio(self):
        """Serve MCP over stdin/stdout until the client disconnects"""
        bot_task = asyncio.create_task(self.discord_bot.start())
        try:
            await StdioTransport(self.mcp_handler).serve()
        finally:
            await self.discord_bot.close()
            await asyncio.gather(bot_task, return_exceptions=True)

    async def run_api_server(self):
        """Run the FastAPI server"""
        if not settings.api_key:
            logger.warning("API_KEY is not set, every /mcp request will be rejected")
        config = uvicorn.Config(
            self.create_app(),
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower()
        )
        server = uvicorn.Server(config)
        await server.serve()

    async def start(self):
        logger.info(f"Starting Discord MCP server ({settings.transport} transport)...")

        if settings.transport == "http":
            await asyncio.gather(
                self.discord_bot.start(),
                self.run_api_server()
            )
        elif settings.transport == "stdio":
            await self.run_stdio()
        else:
            raise ValueError(f"Unknown MCP_TRANSPORT: {settings.transport}")

async def main():
    server = DiscordMCPServer()
    await server.start()

def run():
    # Logs go to stderr, stdout carries the stdio protocol
    logging.basicConfig(level=settings.log_level)
    asyncio.run(main())

if __name__ == "__main__":
    run()
