"""
MCP Tool Definitions.
Defines all available tools for the MCP protocol.
"""

MCP_TOOLS = [
    # ========== Sending ==========
    {
        "name": "discord_send_message",
        "description": "Send a text message to a Discord channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "Discord channel ID"},
                "message": {"type": "string", "description": "Message content to send"}
            },
            "required": ["channel_id", "message"]
        }
    },
    {
        "name": "discord_send_image",
        "description": "Send an image to a Discord channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "Discord channel ID"},
                "image_path": {"type": "string", "description": "Local path to the image file"},
                "message": {"type": "string", "description": "Optional message to accompany the image"}
            },
            "required": ["channel_id", "image_path"]
        }
    },

    # ========== Reading ==========
    {
        "name": "discord_get_messages",
        "description": "Retrieve recent messages from a Discord channel, newest first",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "Discord channel ID"},
                "limit": {"type": "integer", "description": "Number of messages to retrieve (default: 10, max: 100)", "minimum": 1, "maximum": 100}
            },
            "required": ["channel_id"]
        }
    },
    {
        "name": "discord_get_images",
        "description": "Retrieve images from a Discord channel",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "Discord channel ID"},
                "limit": {"type": "integer", "description": "Number of messages to search for images (default: 50, max: 100)", "minimum": 1, "maximum": 100}
            },
            "required": ["channel_id"]
        }
    },
    {
        "name": "discord_get_messages_advanced",
        "description": "Advanced message retrieval with date range, keyword, author and attachment filters. Walks history backwards in batches of 100 until enough matches are found. Use 'before' with the oldest returned message ID to continue.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "channel_id": {"type": "string", "description": "Discord channel ID"},
                "limit": {"type": "integer", "description": "Maximum number of matching messages (default: 50, max: 100)", "minimum": 1, "maximum": 100},
                "before": {"type": "string", "description": "Get messages before this message ID (for pagination)"},
                "after": {"type": "string", "description": "Get messages after this message ID (for pagination)"},
                "start_date": {"type": "string", "description": "Start date in ISO format (e.g., 2024-01-01T00:00:00Z)"},
                "end_date": {"type": "string", "description": "End date in ISO format (e.g., 2024-12-31T23:59:59Z)"},
                "keyword": {"type": "string", "description": "Keyword to search in message content (case-insensitive)"},
                "author": {"type": "string", "description": "Filter by author display name or ID"},
                "has_attachments": {"type": "boolean", "description": "Only get messages with attachments"}
            },
            "required": ["channel_id"]
        }
    }
]


# Server info for MCP initialize response
MCP_SERVER_INFO = {
    "name": "discord-mcp-server",
    "version": "1.0.0"
}

MCP_PROTOCOL_VERSION = "2024-11-05"
