"""
================================================
Query statistics for executed SQL statements.
================================================

Keeps a bounded, in-memory log of executed statements with their start time,
elapsed time and driver error, so the last queries of an engine can be
inspected when debugging. Only the most recent entries are kept: once the
ring is full, each new entry evicts the oldest one.

Classes:
    StatementStats: One executed statement
    QueryStatistics: Bounded ring of StatementStats with timing helpers

Example:
    >>> from logs.query_stats import QueryStatistics
    >>>
    >>> stats = QueryStatistics(limit=100)
    >>> with stats.measure("SELECT 1"):
    ...     cursor = driver.execute("SELECT 1")
    >>> stats.last_query()
    'SELECT 1'
    >>> stats.snapshot()[0].timer
    0.00042
"""

import logging
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_STATS_LIMIT = 100


@dataclass
class StatementStats:
    """Statistics for one executed statement.

    Attributes:
        query: Final SQL text sent to the driver
        start: UNIX timestamp at which execution started
        timer: Elapsed execution time in seconds
        error: Driver error text, None on success
    """

    query: str
    start: float
    timer: float
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class StatementTimer:
    """Handle yielded by QueryStatistics.measure().

    Lets the measured block attach an error message without raising.
    """

    def __init__(self, query: str):
        self.query = query
        self.error: Optional[str] = None

    def fail(self, error: str) -> None:
        """Mark the measured statement as failed with ``error``."""
        self.error = error


class QueryStatistics:
    """Bounded FIFO log of executed statements.

    Attributes:
        limit: Maximum number of entries retained
    """

    def __init__(self, limit: int = DEFAULT_STATS_LIMIT):
        if limit < 1:
            raise ValueError(f"Statistics limit must be positive, got {limit}")
        self.limit = limit
        self._entries: Deque[StatementStats] = deque(maxlen=limit)

    def record(
        self,
        query: str,
        start: float,
        timer: float,
        error: Optional[str] = None,
    ) -> StatementStats:
        """Append an entry, evicting the oldest one when the ring is full."""
        entry = StatementStats(query=query, start=start, timer=timer, error=error)
        self._entries.append(entry)
        if error:
            logger.debug(f"Query failed after {timer:.6f}s: {error}")
        else:
            logger.debug(f"Query took {timer:.6f}s")
        return entry

    @contextmanager
    def measure(self, query: str) -> Iterator[StatementTimer]:
        """
        Context manager timing the execution of ``query``.

        An entry is recorded when the block exits. If the block raises, the
        exception text is stored as the entry's error and the exception
        propagates.

        Yields:
            StatementTimer for reporting a failure without raising
        """
        handle = StatementTimer(query)
        start = time.time()
        started = time.perf_counter()
        try:
            yield handle
        except Exception as e:
            handle.fail(str(e))
            raise
        finally:
            self.record(query, start, time.perf_counter() - started, handle.error)

    def last_query(self) -> Optional[str]:
        """Return the SQL text of the most recent entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries[-1].query

    def snapshot(self) -> List[StatementStats]:
        """Return a copy of all retained entries, oldest first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[StatementStats]:
        return iter(self.snapshot())
