"""
Paginated filtered history scanner.

Walks a channel's history backwards in batches, filters each message and stops
on the first of: target reached, history exhausted, start date crossed,
batch budget spent, or cancellation.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, AsyncIterator, List, Optional, Protocol

from pydantic import BaseModel

from ..config.settings import MAX_BATCH_SIZE, settings
from ..discord_bot.formatters import format_message_full
from ..models.discord_models import ScanQuery

logger = logging.getLogger(__name__)


class HistorySource(Protocol):
    async def fetch_batch(self, limit: int, before: Optional[str] = None,
                          after: Optional[str] = None) -> List[Any]:
        ...


class ScanState(str, Enum):
    RUNNING = "running"
    DONE_TARGET_REACHED = "target_reached"
    DONE_EXHAUSTED = "exhausted"
    DONE_START_BOUNDARY = "start_boundary"
    DONE_BUDGET = "budget"
    CANCELLED = "cancelled"


class AuthorField(str, Enum):
    BY_NAME = "name"
    BY_ID = "id"


class AuthorMatch:
    """Matches an author by display name or by id"""

    def __init__(self, value: str):
        self.value = value

    def matched_field(self, author) -> Optional[AuthorField]:
        if author.display_name == self.value:
            return AuthorField.BY_NAME
        if str(author.id) == self.value:
            return AuthorField.BY_ID
        return None

    def __call__(self, message) -> bool:
        return self.matched_field(message.author) is not None


class MessageFilter:
    """Content filters applied once a message is inside the date window"""

    def __init__(self, query: ScanQuery):
        self.keyword = query.keyword.lower() if query.keyword else None
        self.author = AuthorMatch(query.author) if query.author else None
        self.has_attachments = query.has_attachments

    def __call__(self, message) -> bool:
        if self.keyword is not None and self.keyword not in (message.content or "").lower():
            return False
        if self.author is not None and not self.author(message):
            return False
        if self.has_attachments and not message.attachments:
            return False
        return True


class ScanResult(BaseModel):
    messages: List[dict]
    summary: dict
    total_fetched: int
    state: ScanState


class HistoryScanner:
    def __init__(self, source: HistorySource, query: ScanQuery,
                 max_batches: Optional[int] = None, batch_size: Optional[int] = None,
                 cancel_event: Optional[asyncio.Event] = None):
        self.source = source
        self.query = query
        self.max_batches = settings.scan_max_batches if max_batches is None else max_batches
        self.batch_size = min(batch_size or settings.scan_batch_size, MAX_BATCH_SIZE)
        self.cancel_event = cancel_event
        self.filter = MessageFilter(query)

        self.state = ScanState.RUNNING
        self.total_fetched = 0
        self.batches = 0
        self.matched = 0

    async def matches(self) -> AsyncIterator[Any]:
        """Yield matching messages newest first until a terminal state is reached"""
        if self.state is not ScanState.RUNNING:
            raise RuntimeError("scan already consumed")

        target = self.query.limit
        start, end = self.query.start_date, self.query.end_date
        cursor = self.query.before

        while self.matched < target and self.batches < self.max_batches:
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.state = ScanState.CANCELLED
                return

            batch = await self.source.fetch_batch(self.batch_size, before=cursor, after=self.query.after)
            self.batches += 1
            self.total_fetched += len(batch)
            logger.debug(f"Batch {self.batches}: {len(batch)} messages before {cursor}")

            if not batch:
                self.state = ScanState.DONE_EXHAUSTED
                return

            batch = sorted(batch, key=lambda m: m.created_at, reverse=True)

            for message in batch:
                if start is not None and message.created_at < start:
                    # Everything after this point is older still
                    self.state = ScanState.DONE_START_BOUNDARY
                    return
                if end is not None and message.created_at > end:
                    continue
                if not self.filter(message):
                    continue

                self.matched += 1
                yield message
                if self.matched >= target:
                    break

            cursor = str(batch[-1].id)

            if self.matched >= target:
                self.state = ScanState.DONE_TARGET_REACHED
                return
            if len(batch) < self.batch_size:
                self.state = ScanState.DONE_EXHAUSTED
                return

        self.state = ScanState.DONE_BUDGET

    async def run(self) -> ScanResult:
        messages = [format_message_full(message) async for message in self.matches()]
        logger.info(
            f"Scan of channel {self.query.channel_id} finished ({self.state.value}): "
            f"{len(messages)} matches from {self.total_fetched} messages in {self.batches} batches"
        )
        return ScanResult(
            messages=messages,
            summary=self.build_summary(len(messages)),
            total_fetched=self.total_fetched,
            state=self.state,
        )

    def build_summary(self, total: int) -> dict:
        query = self.query
        if query.start_date or query.end_date:
            start = query.start_date.isoformat() if query.start_date else "any"
            end = query.end_date.isoformat() if query.end_date else "any"
            date_range = f"{start} to {end}"
        else:
            date_range = "none"

        return {
            "total": total,
            "filters": {
                "date_range": date_range,
                "keyword": query.keyword or "none",
                "author": query.author or "any",
                "has_attachments": query.has_attachments
            },
            "pagination": {
                "before": query.before or "none",
                "after": query.after or "none",
                "total_fetched": self.total_fetched,
                "batches": self.batches
            },
            "stop_reason": self.state.value
        }


async def scan_history(source: HistorySource, query: ScanQuery, **kwargs) -> ScanResult:
    """Run a single scan of `source` for `query`"""
    return await HistoryScanner(source, query, **kwargs).run()
