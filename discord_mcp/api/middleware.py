from fastapi import HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials
import logging
import secrets

from ..config.settings import settings

logger = logging.getLogger(__name__)

class MiddlewareSetup:
    def __init__(self, app):
        self.app = app
        self._setup_cors()
        self._setup_request_logging()

    def _setup_cors(self):
        """Setup CORS middleware with optional origin restrictions"""
        allowed_origins = settings.allowed_origins if settings.allowed_origins else ["*"]

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_request_logging(self):
        @self.app.middleware("http")
        async def request_logging_middleware(request: Request, call_next):
            if request.url.path == "/mcp" and request.method == "POST":
                client = request.client.host if request.client else "unknown"
                logger.debug(f"MCP request from {client}")

            response = await call_next(request)
            return response

def verify_api_key(credentials: HTTPAuthorizationCredentials, api_key=None) -> None:
    """Check the bearer token against the configured API key"""
    expected = api_key if api_key is not None else settings.api_key
    if not expected:
        raise HTTPException(status_code=503, detail="HTTP transport has no API_KEY configured")
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="API key required")
    if not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=401, detail="Invalid API key")
