"""Request analytics.

Request handlers hand events to ``AnalyticsPipeline.send`` which never
blocks: when the bounded queue is full the event is dropped. A single
writer thread drains the queue in rate limited batches, aggregates
visits per URI and stores one row per URI and batch.
"""

import math
import queue
import sqlite3
import threading
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from urllib.parse import urlsplit

from avalanche_report.database import Database
from avalanche_report.exceptions import AnalyticsQueryError
from avalanche_report.exceptions import DatabaseError
from avalanche_report.utils.logging_utils import LoggerMixin
from avalanche_report.utils.rate_limiter import RateLimiter
from avalanche_report.utils.time_utils import format_datetime
from avalanche_report.utils.time_utils import parse_datetime
from avalanche_report.utils.time_utils import utc_now


QUEUE_CAPACITY = 1000
BATCH_SIZE = 50
NOT_FOUND_URI = "/404"
ADMIN_ANALYTICS_PATTERN = "/admin/analytics%"
SUMMARY_LIMIT = 20
DEFAULT_GRAPH_RESOLUTION = 512
MIN_BUCKET_WIDTH = timedelta(milliseconds=1)

DURATIONS = {
    "10-minutes": timedelta(minutes=10),
    "24-hours": timedelta(hours=24),
    "7-days": timedelta(days=7),
    "30-days": timedelta(days=30),
    "365-days": timedelta(days=365),
}
ALL_TIME = "all-time"
CUSTOM = "custom"
DEFAULT_DURATION = "24-hours"

@dataclass(frozen=True)
class Event:
    uri: str

def event_for(path: str, status_code: int) -> Event:
    """Analytics event for a completed request, query strings removed."""
    if status_code == 404:
        return Event(NOT_FOUND_URI)
    return Event(urlsplit(path).path or "/")

_SHUTDOWN = object()

class AnalyticsPipeline(LoggerMixin):
    """Bounded event queue with a single batching writer thread."""

    def __init__(
        self,
        database: Database,
        batch_rate: int = 60,
        capacity: int = QUEUE_CAPACITY,
        batch_size: int = BATCH_SIZE,
        rate_limiter: RateLimiter | None = None
    ):
        super().__init__()
        self.database = database
        self.batch_size = batch_size
        self.rate_limiter = rate_limiter or RateLimiter(batch_rate, 60)
        self.queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._closing = False
        self._stopping = threading.Event()
        self._thread: threading.Thread | None = None

    def send(self, event: Event) -> bool:
        """Queue an event without blocking, returns False when it was dropped."""
        try:
            self.queue.put_nowait(event)
        except queue.Full:
            self.logger.debug("Analytics queue full, dropping event for %s", event.uri)
            return False
        return True

    def record(self, path: str, status_code: int) -> bool:
        return self.send(event_for(path, status_code))

    def _drain(self, first: Event) -> list[Event]:
        batch = [first]
        while len(batch) < self.batch_size:
            try:
                item = self.queue.get_nowait()
            except queue.Empty:
                break
            if item is _SHUTDOWN:
                self._closing = True
                break
            batch.append(item)
        return batch

    def next_batch(self) -> list[Event] | None:
        """Block for the next batch of events, ``None`` once shut down."""
        first = self.queue.get()
        if first is _SHUTDOWN:
            self._closing = True
            return None
        # Once stopping, queued events are flushed without waiting.
        self.rate_limiter.acquire(self._stopping)
        return self._drain(first)

    def write_batch(self, events: list[Event], now: datetime | None = None) -> Counter:
        """Aggregate events per URI and insert them in one statement."""
        counts = Counter(event.uri for event in events)
        if not counts:
            return counts
        time = format_datetime(now or utc_now())
        placeholders = ", ".join(["(?, ?, ?, ?)"] * len(counts))
        parameters: list[object] = []
        for uri, visits in counts.items():
            parameters.extend((str(uuid.uuid4()), uri, visits, time))
        with self.database.connection() as conn:
            conn.execute(
                f"INSERT INTO analytics (id, uri, visits, time) VALUES {placeholders}",
                parameters
            )
        self.logger.debug("Stored analytics batch of %d events for %d uris", len(events), len(counts))
        return counts

    def run_once(self) -> Counter | None:
        """Write whatever is queued as one batch without waiting."""
        try:
            first = self.queue.get_nowait()
        except queue.Empty:
            return None
        if first is _SHUTDOWN:
            self._closing = True
            return None
        return self.write_batch(self._drain(first))

    def run(self) -> None:
        while not self._closing:
            batch = self.next_batch()
            if batch is None:
                break
            try:
                self.write_batch(batch)
            except (sqlite3.Error, DatabaseError) as e:
                self.error("Error writing analytics batch", exc_info=e, events=len(batch))
        self.info("Analytics writer stopped")

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="analytics-writer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Flush queued events and stop the writer."""
        self._stopping.set()
        try:
            self.queue.put(_SHUTDOWN, timeout=timeout)
        except queue.Full:
            self.warning("Analytics queue still full at shutdown")
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                self.warning("Analytics writer did not stop in time", pending=self.queue.qsize())

@dataclass
class AnalyticsSummary:
    uri: str
    visits: int

@dataclass
class GraphBucket:
    start: datetime
    end: datetime
    visits: int

def resolve_window(
    duration: str | None,
    from_: datetime | None,
    to: datetime | None,
    now: datetime | None = None
) -> tuple[datetime | None, datetime]:
    """Turn admin query parameters into a ``(from, to)`` window.

    ``from`` is ``None`` for the all-time window.
    """
    now = now or utc_now()
    if duration is not None and from_ is not None and to is not None:
        raise AnalyticsQueryError("Cannot specify from, to and duration together")
    if from_ is not None and to is not None and to < from_:
        raise AnalyticsQueryError("to must not be before from")

    if duration is None:
        duration = CUSTOM if (from_ is not None or to is not None) else DEFAULT_DURATION

    if duration == ALL_TIME:
        return None, to or now
    if duration == CUSTOM:
        if from_ is None:
            raise AnalyticsQueryError("Custom duration requires from")
        return from_, to or now
    if duration not in DURATIONS:
        raise AnalyticsQueryError(f"Unknown duration {duration!r}", {"duration": duration})

    length = DURATIONS[duration]
    if from_ is not None:
        return from_, from_ + length
    end = to or now
    return end - length, end

def _filters(from_: datetime | None, to: datetime, uri_filter: str | None) -> tuple[str, list[str]]:
    clauses = ["uri NOT LIKE ?", "time <= ?"]
    parameters = [ADMIN_ANALYTICS_PATTERN, format_datetime(to)]
    if from_ is not None:
        clauses.append("time >= ?")
        parameters.append(format_datetime(from_))
    if uri_filter:
        clauses.append("uri GLOB ?")
        parameters.append(uri_filter)
    return " AND ".join(clauses), parameters

def get_summaries(
    database: Database,
    from_: datetime | None,
    to: datetime,
    uri_filter: str | None = None
) -> list[AnalyticsSummary]:
    """Top URIs by total visits within the window."""
    where, parameters = _filters(from_, to, uri_filter)
    with database.connection() as conn:
        rows = conn.execute(
            f"SELECT uri, SUM(visits) AS visits FROM analytics WHERE {where} "
            f"GROUP BY uri ORDER BY visits DESC, uri LIMIT {SUMMARY_LIMIT}",
            parameters
        ).fetchall()
    return [AnalyticsSummary(uri=row["uri"], visits=row["visits"]) for row in rows]

def graph_analytics(
    database: Database,
    from_: datetime | None,
    to: datetime,
    uri_filter: str | None = None,
    resolution: int = DEFAULT_GRAPH_RESOLUTION
) -> list[GraphBucket]:
    """Visits bucketed over the window.

    Buckets are half open ``[start, end)`` except the last which also
    includes ``to``. Buckets are at least one millisecond wide, so short
    windows produce fewer than ``resolution`` buckets.
    """
    if resolution <= 0:
        raise AnalyticsQueryError("resolution must be positive")
    where, parameters = _filters(from_, to, uri_filter)
    with database.connection() as conn:
        rows = conn.execute(
            f"SELECT time, visits FROM analytics WHERE {where} ORDER BY time",
            parameters
        ).fetchall()

    points = [(parse_datetime(row["time"]), row["visits"]) for row in rows]
    if from_ is None:
        from_ = points[0][0] if points else to

    span = to - from_
    width = max(span / resolution, MIN_BUCKET_WIDTH)
    count = max(1, min(resolution, math.ceil(span / width)))

    buckets = [
        GraphBucket(start=from_ + width * index, end=from_ + width * (index + 1), visits=0)
        for index in range(count)
    ]
    buckets[-1].end = to if to > buckets[-1].start else buckets[-1].end

    for time, visits in points:
        index = min(int((time - from_) / width), count - 1)
        buckets[index].visits += visits
    return buckets
