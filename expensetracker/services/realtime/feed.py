"""
Change Feed

DESIGN DECISION: Live refresh is an event stream that consumers iterate
on their own schedule. Nothing in the write path publishes to it; the
backend's realtime channel is the only producer. A consumer that falls
behind simply re-fetches: the backend stays the source of truth.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional

import structlog
from supabase import AsyncClient, acreate_client

from expensetracker.config import SupabaseSettings, get_settings
from expensetracker.models.expense import ChangeType, ExpenseChangeEvent


logger = structlog.get_logger("expensetracker.realtime")


def parse_change_payload(payload: dict[str, Any], default_table: str) -> Optional[ExpenseChangeEvent]:
    """
    Turn a postgres_changes payload into an ExpenseChangeEvent.

    Accepts both the wrapped ``{"data": {...}}`` shape and the flat one.
    Returns None for payloads without a recognizable change type.
    """
    data = payload.get("data", payload) if isinstance(payload, dict) else {}
    raw_type = data.get("type") or data.get("eventType")
    try:
        event_type = ChangeType(str(raw_type).upper())
    except ValueError:
        return None

    return ExpenseChangeEvent(
        event_type=event_type,
        table=data.get("table") or default_table,
        record=data.get("record") or data.get("new") or {},
        old_record=data.get("old_record") or data.get("old") or {},
    )


class ChangeFeed(ABC):
    """An async stream of row changes for one table."""

    @abstractmethod
    async def start(self) -> None:
        """Begin receiving changes."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def events(self) -> AsyncIterator[ExpenseChangeEvent]:
        """Iterate changes as they arrive. Ends after ``stop()``."""
        pass


class QueueChangeFeed(ChangeFeed):
    """
    ChangeFeed backed by an asyncio.Queue.

    Producers call ``publish``; ``stop`` wakes the consumer and ends iteration.
    ``stop`` never waits on a full queue.
    """

    _STOP = object()

    def __init__(self, max_pending: int = 1000):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._running = False

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        if self._running:
            self._running = False
            if self._queue.full():
                # Make room for the sentinel; the oldest pending change is dropped
                dropped = self._queue.get_nowait()
                logger.warning("change_feed_overflow", table=dropped.table)
            self._queue.put_nowait(self._STOP)

    def publish(self, event: ExpenseChangeEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            # Consumer is behind; it will re-fetch on the next event
            logger.warning("change_feed_overflow", table=event.table)

    async def events(self) -> AsyncIterator[ExpenseChangeEvent]:
        while True:
            item = await self._queue.get()
            if item is self._STOP:
                return
            yield item


class SupabaseChangeFeed(QueueChangeFeed):
    """
    Subscribes to Supabase realtime ``postgres_changes`` for one table.

    Uses the async client, so it must be started on the event loop that
    consumes it.
    """

    def __init__(
        self,
        table: Optional[str] = None,
        row_filter: Optional[str] = None,
        settings: Optional[SupabaseSettings] = None,
        schema: str = "public",
    ):
        super().__init__()
        self._settings = settings or get_settings().supabase
        self._table = table or self._settings.expenses_table
        self._filter = row_filter
        self._schema = schema
        self._client: Optional[AsyncClient] = None
        self._channel = None

    def _on_change(self, payload: dict[str, Any]) -> None:
        event = parse_change_payload(payload, self._table)
        if event is None:
            logger.warning("unrecognized_change_payload", table=self._table)
            return
        self.publish(event)

    async def start(self) -> None:
        if self._channel is not None:
            return
        self._client = await acreate_client(self._settings.url, self._settings.anon_key)
        self._channel = self._client.channel(f"{self._table}-changes")

        options: dict[str, Any] = {"schema": self._schema, "table": self._table}
        if self._filter:
            options["filter"] = self._filter
        self._channel.on_postgres_changes("*", callback=self._on_change, **options)

        await self._channel.subscribe()
        await super().start()
        logger.info("change_feed_started", table=self._table, filter=self._filter)

    async def stop(self) -> None:
        if self._channel is not None and self._client is not None:
            await self._client.remove_channel(self._channel)
            self._channel = None
            logger.info("change_feed_stopped", table=self._table)
        await super().stop()
