"""
Formatting utilities for Discord objects.
Provides flat dictionary projections for messages and attachments.
"""
import discord


def format_attachment(attachment: discord.Attachment) -> dict:
    """Format an attachment into a dictionary"""
    return {
        "filename": attachment.filename,
        "url": attachment.url,
        "size": attachment.size,
        "content_type": getattr(attachment, "content_type", None)
    }


def format_message(message: discord.Message) -> dict:
    """Format a Discord message into a consistent dictionary structure"""
    return {
        "id": str(message.id),
        "author": message.author.display_name,
        "author_id": str(message.author.id),
        "content": message.content,
        "timestamp": message.created_at.isoformat(),
        "attachments": [format_attachment(att) for att in message.attachments]
    }


def format_message_full(message: discord.Message) -> dict:
    """Format a Discord message with embed and reaction counts"""
    data = format_message(message)
    data["embeds"] = len(message.embeds)
    # One entry per distinct emoji
    data["reactions"] = len(message.reactions)
    return data


def format_images(message: discord.Message) -> list:
    """Image attachments of a message, one record per attachment"""
    images = []
    for att in message.attachments:
        content_type = getattr(att, "content_type", None)
        if not content_type or not content_type.startswith("image/"):
            continue
        images.append({
            "message_id": str(message.id),
            "author": message.author.display_name,
            "timestamp": message.created_at.isoformat(),
            "filename": att.filename,
            "url": att.url,
            "size": att.size,
            "content_type": content_type
        })
    return images
