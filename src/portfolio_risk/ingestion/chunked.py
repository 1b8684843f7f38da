import asyncio
import logging
import math
import threading
from collections.abc import Callable, Sequence
from typing import TypeVar

from portfolio_risk.errors import CancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int], None]


class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancelledError("Processing cancelled by user")


class ProgressTracker:
    """Forward integer percentages to a callback, never going backwards."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: float) -> None:
        value = max(0, min(100, int(percent)))
        if value <= self._last:
            return
        self._last = value
        if self._callback is not None:
            self._callback(value)


async def process_in_chunks(
    items: Sequence[T],
    handle_chunk: Callable[[Sequence[T], int], list[R]],
    chunk_size: int,
    token: CancellationToken | None = None,
    on_progress: Callable[[float], None] | None = None,
) -> list[R]:
    """Run ``handle_chunk`` over consecutive slices of ``items``.

    The token is checked before every chunk, so a cancel takes effect at the
    next chunk boundary and the partial results are dropped with the raised
    ``CancelledError``. Control returns to the event loop between chunks.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    total_chunks = max(1, math.ceil(len(items) / chunk_size))
    results: list[R] = []

    for i in range(total_chunks):
        if token is not None:
            token.raise_if_cancelled()
        start = i * chunk_size
        chunk = items[start : start + chunk_size]
        results.extend(handle_chunk(chunk, start))

        if on_progress is not None:
            on_progress((i + 1) / total_chunks * 100)
        logger.debug("Processed chunk %d/%d", i + 1, total_chunks)

        if i < total_chunks - 1:
            await asyncio.sleep(0)

    return results
