from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from discord_mcp.models.discord_models import GetImagesRequest, GetMessagesRequest, ScanQuery, parse_date


def test_scan_query_defaults() -> None:
    query = ScanQuery(channel_id=123)

    assert query.channel_id == "123"
    assert query.limit == 50
    assert query.keyword is None
    assert query.has_attachments is False


@pytest.mark.parametrize("value, expected", [(None, 50), (0, 50), (1, 1), (100, 100), (250, 100), (-5, 1)])
def test_scan_query_limit(value, expected) -> None:
    assert ScanQuery(channel_id="1", limit=value).limit == expected


def test_other_tool_limits() -> None:
    assert GetMessagesRequest(channel_id="1").limit == 10
    assert GetImagesRequest(channel_id="1", limit=1000).limit == 100


def test_blank_filters_mean_no_filter() -> None:
    query = ScanQuery(channel_id="1", keyword="", author="", before="", has_attachments=None)

    assert query.keyword is None
    assert query.author is None
    assert query.before is None
    assert query.has_attachments is False


def test_parse_date_formats() -> None:
    utc = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert parse_date("2024-01-01T00:00:00Z") == utc
    assert parse_date("2024-01-01") == utc
    assert parse_date("2024-01-01T02:00:00+02:00") == utc
    assert parse_date("not a date") is None
    assert parse_date(None) is None


def test_channel_id_is_required() -> None:
    with pytest.raises(ValidationError):
        ScanQuery(limit=5)
