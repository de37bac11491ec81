import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def _normalize_limit(value, default: int) -> int:
    """Missing or zero means default, anything else is clamped to 1..MAX_LIMIT"""
    if value is None or value == 0 or value == "":
        return default
    return max(1, min(int(value), MAX_LIMIT))


def parse_date(value) -> Optional[datetime]:
    """Parse an ISO 8601 string into an aware datetime.

    Unparseable input is treated as no bound rather than rejected.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            text = str(value).strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Ignoring unparseable date filter: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ChannelRequest(BaseModel):
    channel_id: str

    @field_validator("channel_id", mode="before")
    @classmethod
    def coerce_channel_id(cls, value):
        if isinstance(value, int):
            return str(value)
        return value


class SendMessageRequest(ChannelRequest):
    message: str


class SendImageRequest(ChannelRequest):
    image_path: str
    message: Optional[str] = None


class GetMessagesRequest(ChannelRequest):
    limit: int = 10

    @field_validator("limit", mode="before")
    @classmethod
    def normalize_limit(cls, value):
        return _normalize_limit(value, 10)


class GetImagesRequest(ChannelRequest):
    limit: int = 50

    @field_validator("limit", mode="before")
    @classmethod
    def normalize_limit(cls, value):
        return _normalize_limit(value, 50)


class ScanQuery(ChannelRequest):
    """Arguments of discord_get_messages_advanced"""
    limit: int = 50
    before: Optional[str] = None
    after: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    keyword: Optional[str] = None
    author: Optional[str] = None
    has_attachments: bool = False

    @field_validator("limit", mode="before")
    @classmethod
    def normalize_limit(cls, value):
        return _normalize_limit(value, 50)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, value):
        return parse_date(value)

    @field_validator("before", "after", "keyword", "author", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("has_attachments", mode="before")
    @classmethod
    def default_has_attachments(cls, value):
        return False if value is None else value
