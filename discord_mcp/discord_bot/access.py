"""
Access control for Discord channels.
Applies the ALLOWED_GUILDS / ALLOWED_CHANNELS allow-lists from configuration.
"""
import discord

from ..config.settings import settings


class AccessChecker:
    """Decides whether a resolved channel may be used by the tools"""

    def __init__(self, allowed_guilds=None, allowed_channels=None):
        self.allowed_guilds = settings.allowed_guilds if allowed_guilds is None else allowed_guilds
        self.allowed_channels = settings.allowed_channels if allowed_channels is None else allowed_channels

    def check_channel_access(self, channel) -> bool:
        """Check a channel or thread against the configured allow-lists"""
        # Threads inherit the decision of their parent channel
        if isinstance(channel, discord.Thread):
            parent = channel.parent
            if parent is None:
                return False
            channel = parent

        if self.allowed_channels:
            return channel.id in self.allowed_channels

        if self.allowed_guilds:
            guild = getattr(channel, "guild", None)
            return guild is not None and guild.id in self.allowed_guilds

        # If neither is set, allow all channels
        return True
