"""
Batch finalizer. Re-asserts the size bounds before a batch leaves the engine.
"""

import logging

from acquisition.errors import InsufficientData
from models import MIN_BATCH_SIZE, AcquisitionResult, AcquisitionStatus, ReviewItem, StopReason

log = logging.getLogger(__name__)


def finalize(
    accepted: list[ReviewItem],
    target_count: int,
    stop_reason: StopReason = StopReason.TARGET_REACHED,
    min_size: int = MIN_BATCH_SIZE,
    pages_fetched: int = 0,
) -> AcquisitionResult:
    """
    Truncate to target and classify the result.

    Raises:
        InsufficientData: fewer than `min_size` items, unless the run
            was cancelled (cancellation keeps whatever was gathered).
    """
    items = list(accepted[:target_count])
    count = len(items)

    if stop_reason is StopReason.CANCELLED:
        log.info(f"Acquisition cancelled with {count}/{target_count} reviews")
        return AcquisitionResult(items, target_count, AcquisitionStatus.CANCELLED, stop_reason, pages_fetched)

    if count < min_size:
        raise InsufficientData(count, min_size)

    if count < target_count:
        log.warning(f"Only {count} reviews collected, target was {target_count} ({stop_reason.value})")
        return AcquisitionResult(items, target_count, AcquisitionStatus.PARTIAL, stop_reason, pages_fetched)

    return AcquisitionResult(items, target_count, AcquisitionStatus.COMPLETE, stop_reason, pages_fetched)
