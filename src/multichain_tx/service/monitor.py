"""
Per-hash confirmation waiter entry.

A ConfirmationWatch bundles everything owned by one transaction hash
while it is being confirmed: the futures of every caller awaiting the
receipt, the timeout handle and the polling task. Settling the watch
(resolve, reject or close) always cancels both timers first, so no exit
path can leak either.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

from multichain_tx.types.transaction import TransactionReceipt
from multichain_tx.utils.logging import get_logger

_logger = get_logger(__name__)

TickCallback = Callable[[], Awaitable[None]]
TimeoutCallback = Callable[[], None]


class ConfirmationWatch:
    """
    Waiters and timers for one chain hash.

    Any number of callers may wait on the same hash; all of them are
    settled together. Polling runs as a single sleep-then-tick task, so two
    ticks for the same hash can never overlap even when a request takes
    longer than the polling interval.
    """

    def __init__(self, chain_hash: str) -> None:
        self.chain_hash = chain_hash
        self._waiters: List[asyncio.Future[TransactionReceipt]] = []
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._poll_task: Optional[asyncio.Task[None]] = None
        self._closed = False
        self._settled = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def armed(self) -> bool:
        """True while the timeout or the poller is live."""
        return self._timeout_handle is not None or self._poll_task is not None

    @property
    def waiter_count(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    def add_waiter(self) -> "asyncio.Future[TransactionReceipt]":
        """Register a new waiter. Earlier waiters are kept."""
        future: asyncio.Future[TransactionReceipt] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        return future

    def arm(
        self,
        timeout: float,
        interval: float,
        on_timeout: TimeoutCallback,
        on_tick: TickCallback,
    ) -> None:
        """
        Start the timeout and the poller. Re-arming replaces both timers.

        Args:
            timeout: Seconds until ``on_timeout`` fires
            interval: Seconds between ``on_tick`` calls
            on_timeout: Called once if the watch is still open at the deadline
            on_tick: Awaited once per polling interval
        """
        if self._closed:
            return
        self._clear_timers()
        loop = asyncio.get_running_loop()
        self._timeout_handle = loop.call_later(timeout, on_timeout)
        self._poll_task = loop.create_task(
            self._poll(interval, on_tick),
            name=f"confirmation-poll-{self.chain_hash[:12]}",
        )

    async def _poll(self, interval: float, on_tick: TickCallback) -> None:
        while not self._closed:
            await asyncio.sleep(interval)
            if self._closed:
                return
            try:
                await on_tick()
            except Exception:
                _logger.exception("Confirmation poll for %s failed", self.chain_hash)

    def _clear_timers(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None
        task = self._poll_task
        self._poll_task = None
        # The poller may be the one settling the watch; it exits on its own.
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()

    def resolve(self, receipt: TransactionReceipt) -> None:
        """Clear timers, then deliver ``receipt`` to every waiter."""
        if self._settled:
            return
        self._settled = True
        self.close()
        for future in self._waiters:
            if not future.done():
                future.set_result(receipt)
        self._waiters.clear()

    def reject(self, error: BaseException) -> None:
        """Clear timers, then deliver ``error`` to every waiter."""
        if self._settled:
            return
        self._settled = True
        self.close()
        for future in self._waiters:
            if not future.done():
                future.set_exception(error)
        self._waiters.clear()

    def close(self) -> None:
        """Stop both timers. Waiters are left to resolve/reject."""
        self._closed = True
        self._clear_timers()
