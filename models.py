"""
Core data types. No behavior, just shapes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


FIRST_PAGE_CURSOR = "*"

# Smallest batch a successful acquisition may return. Config can raise it, never lower it.
MIN_BATCH_SIZE = 100


class AcquisitionStatus(Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"         # short of target, but above the minimum floor
    CANCELLED = "cancelled"


class StopReason(Enum):
    TARGET_REACHED = "target_reached"
    EXHAUSTED = "exhausted"             # empty page, or empty/unchanged cursor
    STALLED = "stalled"                 # cursor repeated the previous one
    DUPLICATE_LOOP = "duplicate_loop"   # too many all-duplicate pages
    CANCELLED = "cancelled"


@dataclass
class ReviewItem:
    """A single review pulled from the source."""
    item_id: str            # source-assigned id, the dedup key
    body: str               # review text
    author: dict = field(default_factory=dict)  # opaque author reference

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "body": self.body,
            "author": self.author,
        }

    def __repr__(self) -> str:
        return f"ReviewItem({self.item_id}, {self.body[:40]!r})"


@dataclass
class PageResult:
    """One page fetch. Empty next_cursor means end of stream."""
    success: bool
    items: list[ReviewItem] = field(default_factory=list)
    next_cursor: str = ""
    total_hint: int | None = None   # source-reported total, informational


@dataclass
class ProgressSnapshot:
    accepted: int
    percent: int


@dataclass
class AcquisitionResult:
    """Terminal output of one acquisition. The caller owns `items`."""
    items: list[ReviewItem]
    target_count: int
    status: AcquisitionStatus
    stop_reason: StopReason
    pages_fetched: int = 0

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def is_partial(self) -> bool:
        return self.status is not AcquisitionStatus.COMPLETE

    @property
    def short_by(self) -> int:
        return max(0, self.target_count - self.count)


@dataclass
class BatchRecord:
    """A saved batch, as read back from storage."""
    id: int
    source_id: str
    display_name: str
    item_count: int
    target_count: int | None
    status: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "display_name": self.display_name,
            "item_count": self.item_count,
            "target_count": self.target_count,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }
