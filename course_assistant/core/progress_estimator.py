"""
Progress estimation for scan sessions.

Percent and time-left are derived from elapsed time against an estimated
total. The crawl phase starts from a fixed estimate; once the crawl reports
how many documents will be uploaded the estimate is rebased on that count.
Displayed progress never decreases within one scan and stays below the
completion ceiling until complete() is called.

Dependencies: math (stdlib)
System role: Scan progress display
"""

import math

from pydantic import BaseModel


class ProgressReading(BaseModel):
    """Displayed progress at one instant."""

    percent: float
    time_left_seconds: int
    estimated_total_seconds: float


class ProgressEstimator:
    """Monotonic elapsed-time progress estimator for one scan at a time."""

    def __init__(
        self,
        crawl_estimate_seconds: float = 180.0,
        seconds_per_document: float = 8.0,
        max_percent: float = 95.0,
    ) -> None:
        self.crawl_estimate_seconds = crawl_estimate_seconds
        self.seconds_per_document = seconds_per_document
        self.max_percent = max_percent
        self._started_ms: int | None = None
        self._estimated_total_ms: float = crawl_estimate_seconds * 1000
        self._last_percent = 0.0
        self._completed = False

    @property
    def started_ms(self) -> int | None:
        return self._started_ms

    @property
    def estimated_total_seconds(self) -> float:
        return self._estimated_total_ms / 1000

    def start(self, started_ms: int, estimated_total_seconds: float | None = None) -> None:
        """Begin a new scan; resets the monotonic floor."""
        self._started_ms = started_ms
        self._estimated_total_ms = (
            estimated_total_seconds or self.crawl_estimate_seconds
        ) * 1000
        self._last_percent = 0.0
        self._completed = False

    def rebase_for_upload(self, now_ms: int, document_count: int) -> float:
        """
        Recompute the total once the number of documents to upload is known.

        The new total is the time already spent plus the per-document upload
        estimate for the remaining work.

        Returns:
            float: New estimated total in seconds
        """
        elapsed_ms = self._elapsed_ms(now_ms)
        self._estimated_total_ms = elapsed_ms + document_count * self.seconds_per_document * 1000
        return self.estimated_total_seconds

    def observe(self, percent: float | None) -> float:
        """Raise the floor to an externally reported percent, capped at the ceiling."""
        if percent is not None and not self._completed:
            self._last_percent = max(self._last_percent, min(percent, self.max_percent))
        return self._last_percent

    def estimate(self, now_ms: int) -> ProgressReading:
        if self._completed:
            return ProgressReading(
                percent=100.0,
                time_left_seconds=0,
                estimated_total_seconds=self.estimated_total_seconds,
            )

        elapsed_ms = self._elapsed_ms(now_ms)
        total_ms = self._estimated_total_ms
        computed = min(elapsed_ms / total_ms * 100, self.max_percent) if total_ms > 0 else self.max_percent
        self._last_percent = max(self._last_percent, computed)
        time_left = max(0, math.ceil((total_ms - elapsed_ms) / 1000))
        return ProgressReading(
            percent=self._last_percent,
            time_left_seconds=time_left,
            estimated_total_seconds=self.estimated_total_seconds,
        )

    def complete(self) -> ProgressReading:
        """Mark confirmed completion; the only path to 100%."""
        self._completed = True
        self._last_percent = 100.0
        return ProgressReading(
            percent=100.0,
            time_left_seconds=0,
            estimated_total_seconds=self.estimated_total_seconds,
        )

    def _elapsed_ms(self, now_ms: int) -> int:
        if self._started_ms is None:
            return 0
        return max(0, now_ms - self._started_ms)
