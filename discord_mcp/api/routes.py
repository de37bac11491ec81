from fastapi import Security, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging
import json

from .middleware import verify_api_key

logger = logging.getLogger(__name__)

class APIRoutes:
    def __init__(self, app, discord_bot, mcp_handler, api_key=None):
        self.app = app
        self.discord_bot = discord_bot
        self.mcp_handler = mcp_handler
        self.api_key = api_key
        self._setup_routes()

    def _setup_routes(self):
        @self.app.get("/", summary="Health check")
        async def root():
            return {
                "service": "Discord MCP Server",
                "status": "running",
                "bot_ready": self.discord_bot.is_ready(),
                "guilds": self.discord_bot.guild_count,
            }

        @self.app.get("/health", summary="Health check for monitoring")
        async def health_check():
            """Simple health check that doesn't require auth"""
            return {
                "status": "ok",
                "bot_ready": self.discord_bot.is_ready()
            }

        @self.app.post("/mcp", summary="MCP Protocol Handler")
        async def mcp_handler(
            mcp_request: dict,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Security(HTTPBearer())
        ):
            """Handle MCP protocol requests"""
            verify_api_key(credentials, self.api_key)

            origin = request.headers.get("origin")
            if origin:
                logger.info(f"MCP request from origin: {origin}")

            response_data = await self.mcp_handler.handle_request(mcp_request)

            # Notifications carry no id and get no JSON-RPC response
            if "id" not in mcp_request:
                return Response(
                    content=json.dumps(response_data),
                    status_code=202,
                    media_type="application/json"
                )

            return response_data
