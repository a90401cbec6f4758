"""
Expiry Sweeper - Periodic closing of auctions past their end time.

Protocol:
1. Every `interval` seconds, lock the repository
2. Close every active auction whose end time is strictly in the past
3. Write the batch back in a single store write
4. Notify tick listeners with the ids that were closed

A failing tick is logged and the schedule carries on.
"""

import asyncio
from datetime import datetime
from typing import Callable, List, Optional

from gavel.core.auction.repository import AuctionRepository
from gavel.core.models import AuctionStatus, utcnow
from gavel.utils.logger import get_logger

logger = get_logger("sweeper")

TickListener = Callable[[List[int]], None]


class ExpirySweeper:
    """
    Closes expired auctions on a fixed period.

    Runs as an asyncio task with an explicit start/stop lifecycle.
    `stop()` stops scheduling new ticks and waits for an in-flight
    tick to finish.
    """

    def __init__(
        self,
        repository: AuctionRepository,
        interval: float = 1.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.interval = interval
        self.clock = clock
        self.tick_count = 0
        self._listeners: List[TickListener] = []
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def add_listener(self, listener: TickListener) -> None:
        """Register a callback invoked after every tick."""
        self._listeners.append(listener)

    # =========================================================================
    # Ticks
    # =========================================================================

    def tick(self, now: Optional[datetime] = None) -> List[int]:
        """
        Close every active auction that has expired.

        Args:
            now: Tick time (defaults to the clock)

        Returns:
            Ids of the auctions closed by this tick
        """
        now = now or self.clock()
        closed: List[int] = []

        with self.repository.transaction() as tx:
            for auction in tx.auctions:
                if auction.status == AuctionStatus.ACTIVE and auction.is_expired(now):
                    auction.status = AuctionStatus.CLOSED
                    closed.append(auction.id)
            if closed:
                tx.mark_dirty()

        if closed:
            logger.info(f"Closed {len(closed)} expired auction(s): {closed}")
        return closed

    def run_once(self) -> List[int]:
        """Run a tick and notify listeners. Never raises."""
        self.tick_count += 1
        try:
            closed = self.tick()
        except Exception:
            logger.exception(f"Sweeper tick {self.tick_count} failed")
            closed = []

        for listener in list(self._listeners):
            try:
                listener(closed)
            except Exception:
                logger.exception("Tick listener failed")

        return closed

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._running:
            return
        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(f"Expiry sweeper started (interval={self.interval}s)")

    async def stop(self) -> None:
        """Stop scheduling ticks and wait for the current one to finish."""
        if not self._running:
            return
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            await self._task
            self._task = None
        logger.info("Expiry sweeper stopped")

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.to_thread(self.run_once)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
