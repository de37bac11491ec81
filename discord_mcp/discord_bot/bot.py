import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import discord

from ..config.settings import settings
from ..history.scanner import HistoryScanner, ScanResult
from ..models.discord_models import ScanQuery
from .access import AccessChecker
from .errors import AccessDeniedError, ChannelNotFoundError, DiscordToolError, NotReadyError
from .formatters import format_images, format_message

logger = logging.getLogger(__name__)


class ChannelHistorySource:
    """Batch-fetch adapter over a messageable channel's history"""

    def __init__(self, channel: discord.abc.Messageable):
        self.channel = channel

    async def fetch_batch(self, limit: int, before: Optional[str] = None,
                          after: Optional[str] = None) -> List[discord.Message]:
        kwargs = {"limit": limit, "oldest_first": False}
        if before:
            kwargs["before"] = discord.Object(id=int(before))
        if after:
            kwargs["after"] = discord.Object(id=int(after))
        return [message async for message in self.channel.history(**kwargs)]


class DiscordBot:
    def __init__(self, client: Optional[discord.Client] = None, access: Optional[AccessChecker] = None):
        if client is None:
            intents = discord.Intents.default()
            intents.guilds = True
            intents.guild_messages = True
            intents.message_content = True
            client = discord.Client(intents=intents)
            self._setup_events(client)

        self.client = client
        self.access = access or AccessChecker()
        self.login_error: Optional[Exception] = None
        self._login_failed = asyncio.Event()

    def _setup_events(self, client: discord.Client):
        @client.event
        async def on_ready():
            logger.info(f'{client.user} has connected to Discord!')
            logger.info(f'Client is in {len(client.guilds)} guilds')

    async def start(self):
        """Log in and run the Discord client until it is closed"""
        if not settings.discord_token:
            logger.error("DISCORD_BOT_TOKEN is not set, Discord client not started")
            return
        try:
            await self.client.start(settings.discord_token)
        except (discord.LoginFailure, discord.HTTPException) as e:
            logger.error(f"Discord login failed: {e}")
            self.login_error = e
            self._login_failed.set()

    async def close(self):
        if not self.client.is_closed():
            await self.client.close()

    def is_ready(self) -> bool:
        """Check if client is ready"""
        return self.client.is_ready()

    @property
    def guild_count(self) -> int:
        """Get number of guilds the client is in"""
        return len(self.client.guilds) if self.client.is_ready() else 0

    async def ensure_ready(self):
        if self.client.is_ready():
            return
        if not settings.discord_token:
            raise NotReadyError("DISCORD_BOT_TOKEN environment variable is required")
        if self.login_error is not None:
            raise NotReadyError(f"Discord login failed: {self.login_error}")

        # Wake on whichever comes first: ready, login failure, timeout
        ready = asyncio.ensure_future(self.client.wait_until_ready())
        failed = asyncio.ensure_future(self._login_failed.wait())
        done, pending = await asyncio.wait(
            {ready, failed}, timeout=settings.ready_timeout, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        if self.login_error is not None:
            raise NotReadyError(f"Discord login failed: {self.login_error}")
        if ready not in done:
            raise NotReadyError("Discord client is not ready yet")

    async def get_text_channel(self, channel_id: str) -> discord.abc.Messageable:
        """Resolve a channel that can hold messages, or raise"""
        await self.ensure_ready()
        try:
            snowflake = int(channel_id)
        except (TypeError, ValueError):
            raise ChannelNotFoundError(f"Invalid channel ID: {channel_id}")

        channel = self.client.get_channel(snowflake)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(snowflake)
            except discord.NotFound:
                raise ChannelNotFoundError()

        if not isinstance(channel, discord.abc.Messageable):
            raise ChannelNotFoundError()
        if not self.access.check_channel_access(channel):
            raise AccessDeniedError()
        return channel

    async def send_message(self, channel_id: str, message: str) -> dict:
        """Send a text message to a channel"""
        channel = await self.get_text_channel(channel_id)
        sent = await channel.send(message)
        logger.info(f"Sent message {sent.id} to channel {channel_id}")
        return {"id": str(sent.id), "channel_id": channel_id}

    async def send_image(self, channel_id: str, image_path: str, message: Optional[str] = None) -> dict:
        """Upload a local file to a channel with optional text"""
        channel = await self.get_text_channel(channel_id)
        path = Path(image_path)
        if not path.is_file():
            raise DiscordToolError(f"Failed to send image: file not found: {image_path}")
        try:
            sent = await channel.send(content=message or None, file=discord.File(str(path)))
        except discord.HTTPException as e:
            raise DiscordToolError(f"Failed to send image: {e}") from e
        logger.info(f"Sent image {path.name} as message {sent.id} to channel {channel_id}")
        return {"id": str(sent.id), "channel_id": channel_id}

    async def get_messages(self, channel_id: str, limit: int = 10) -> List[dict]:
        """Get the newest messages from a channel"""
        channel = await self.get_text_channel(channel_id)
        return [format_message(message) async for message in channel.history(limit=limit)]

    async def get_images(self, channel_id: str, limit: int = 50) -> List[dict]:
        """Get image attachments from the newest messages of a channel"""
        channel = await self.get_text_channel(channel_id)
        images = []
        async for message in channel.history(limit=limit):
            images.extend(format_images(message))
        return images

    async def get_messages_advanced(self, query: ScanQuery, cancel_event: Optional[asyncio.Event] = None) -> ScanResult:
        """Scan a channel's history with date, keyword, author and attachment filters"""
        channel = await self.get_text_channel(query.channel_id)
        scanner = HistoryScanner(ChannelHistorySource(channel), query, cancel_event=cancel_event)
        return await scanner.run()
