"""Per-symbol signal subscriptions gated by materiality."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator

import structlog

from signal_core.config.schema import StreamConfig
from signal_core.models import TradingSignal

log = structlog.get_logger("stream")


@dataclass(frozen=True)
class SignalUpdate:
    symbol: str
    signal: TradingSignal
    price_target: float
    sentiment: float | None = None
    timeframe: str | None = None
    timestamp: datetime | None = None


class SignalStream:
    """Fan out updates to per-symbol subscriber queues.

    An update is delivered only if it differs materially from the last one
    delivered for the symbol: a new signal class, a relative price-target
    move of at least ``price_target_delta``, or a sentiment or confidence
    move of at least their deltas. Each timeframe of a symbol keeps its own
    baseline, so interleaved timeframes are not compared with each other.
    Slow subscribers lose their oldest queued update, never the newest.
    """

    def __init__(self, config: StreamConfig | None = None) -> None:
        self.config = config or StreamConfig()
        self._subscribers: dict[str, list[asyncio.Queue]] = {}
        self._last: dict[tuple[str, str | None], SignalUpdate] = {}

    def subscribe(self, symbol: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.queue_size)
        self._subscribers.setdefault(symbol, []).append(queue)
        log.info("stream_subscribed", symbol=symbol, subscribers=len(self._subscribers[symbol]))
        return queue

    def unsubscribe(self, symbol: str, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(symbol, [])
        if queue in queues:
            queues.remove(queue)
        if not queues:
            self._subscribers.pop(symbol, None)

    def subscriber_count(self, symbol: str) -> int:
        return len(self._subscribers.get(symbol, []))

    def is_material(self, update: SignalUpdate) -> bool:
        prev = self._last.get((update.symbol, update.timeframe))
        if prev is None:
            return True
        cfg = self.config
        if update.signal.signal is not prev.signal.signal:
            return True
        if prev.price_target:
            move = abs(update.price_target - prev.price_target) / abs(prev.price_target)
            if move >= cfg.price_target_delta:
                return True
        elif update.price_target:
            return True
        if update.sentiment is not None and prev.sentiment is not None:
            if abs(update.sentiment - prev.sentiment) >= cfg.sentiment_delta:
                return True
        if abs(update.signal.confidence - prev.signal.confidence) >= cfg.confidence_delta:
            return True
        return False

    def publish(self, update: SignalUpdate) -> bool:
        """Deliver *update* if material. Returns whether it was delivered."""
        if not self.is_material(update):
            log.debug(
                "signal_suppressed",
                symbol=update.symbol,
                timeframe=update.timeframe,
                signal=update.signal.signal.value,
            )
            return False
        if update.timestamp is None:
            update = SignalUpdate(
                symbol=update.symbol,
                signal=update.signal,
                price_target=update.price_target,
                sentiment=update.sentiment,
                timeframe=update.timeframe,
                timestamp=datetime.now(timezone.utc),
            )
        self._last[(update.symbol, update.timeframe)] = update
        for queue in self._subscribers.get(update.symbol, []):
            if queue.full():
                queue.get_nowait()
                log.warning("stream_queue_overflow", symbol=update.symbol)
            queue.put_nowait(update)
        log.info(
            "signal_published",
            symbol=update.symbol,
            timeframe=update.timeframe,
            signal=update.signal.signal.value,
            subscribers=self.subscriber_count(update.symbol),
        )
        return True

    async def updates(self, symbol: str) -> AsyncIterator[SignalUpdate]:
        """Async iterator over updates for *symbol*; unsubscribes on exit."""
        queue = self.subscribe(symbol)
        try:
            while True:
                yield await queue.get()
        finally:
            self.unsubscribe(symbol, queue)
