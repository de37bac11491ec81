"""
Exceptions raised by Discord tool operations.
Every one of them is reported to the MCP client as an `Error: <message>` text result.
"""


class DiscordToolError(Exception):
    """Base class for tool failures"""


class NotReadyError(DiscordToolError):
    """The Discord client is not logged in or not ready yet"""


class ChannelNotFoundError(DiscordToolError):
    def __init__(self, message: str = "Channel not found or is not a text channel"):
        super().__init__(message)


class AccessDeniedError(DiscordToolError):
    def __init__(self, message: str = "Access denied to this channel"):
        super().__init__(message)
