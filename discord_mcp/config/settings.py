import os
from typing import List
from dotenv import load_dotenv

load_dotenv()

# Discord caps a single history request at 100 messages
MAX_BATCH_SIZE = 100

class Settings:
    def __init__(self):
        self.discord_token = os.getenv("DISCORD_BOT_TOKEN") or os.getenv("DISCORD_TOKEN")
        self.allowed_guilds = self._parse_ids(os.getenv("ALLOWED_GUILDS", ""))
        self.allowed_channels = self._parse_ids(os.getenv("ALLOWED_CHANNELS", ""))
        self.allowed_origins = self._parse_list(os.getenv("ALLOWED_ORIGINS", ""))
        self.transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower()
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = int(os.getenv("API_PORT", "8000"))
        self.api_key = os.getenv("API_KEY")
        self.scan_max_batches = int(os.getenv("SCAN_MAX_BATCHES", "10"))
        self.scan_batch_size = min(int(os.getenv("SCAN_BATCH_SIZE", str(MAX_BATCH_SIZE))), MAX_BATCH_SIZE)
        self.ready_timeout = float(os.getenv("READY_TIMEOUT", "30"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def _parse_ids(self, ids_string: str) -> List[int]:
        if not ids_string:
            return []
        return [int(id_str.strip()) for id_str in ids_string.split(",") if id_str.strip()]

    def _parse_list(self, list_string: str) -> List[str]:
        """Parse comma-separated string list"""
        if not list_string:
            return []
        return [item.strip() for item in list_string.split(",") if item.strip()]

# Global settings instance
settings = Settings()
