"""
Dataclass for tracking the statistics of a single archive job.
"""

import time
from dataclasses import dataclass, field


@dataclass
class JobStats:
    """Tracks what happened to every item of an archive job."""

    items_total: int = 0
    items_archived: int = 0
    items_skipped: int = 0
    items_failed: int = 0
    archive_warnings: int = 0
    bytes_fetched: int = 0
    bytes_archived: int = 0
    peak_active: int = 0
    started_at: float = field(default_factory=time.monotonic, repr=False)
    finished_at: float | None = field(default=None, repr=False)

    def finish(self) -> None:
        if self.finished_at is None:
            self.finished_at = time.monotonic()

    @property
    def duration_s(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def as_dict(self) -> dict[str, int | float]:
        return {
            "items_total": self.items_total,
            "items_archived": self.items_archived,
            "items_skipped": self.items_skipped,
            "items_failed": self.items_failed,
            "archive_warnings": self.archive_warnings,
            "bytes_archived": self.bytes_archived,
            "peak_active": self.peak_active,
            "duration_s": round(self.duration_s, 2),
        }
