"""
Paginated acquisition engine.

Walks a review source page by page with an opaque cursor until the
target count is reached or the source stops making progress:

- Deduplicates by item_id across the whole run.
- Stops on an empty page, an empty or unchanged cursor, a repeated
  cursor, or too many pages that were all duplicates.
- Retries failed fetches of the same cursor, then gives up with
  TransientSourceError.
- Reports progress once per page that added something.

Strictly sequential. One Acquirer can serve several concurrent
acquire() calls; all mutable state lives in a per-call AcquisitionState.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from acquisition.dedup import DedupIndex
from acquisition.errors import TransientSourceError
from acquisition.finalizer import finalize
from acquisition.retry import RetryPolicy
from config.settings import Config
from models import FIRST_PAGE_CURSOR, AcquisitionResult, ReviewItem, StopReason
from sources.base import ReviewSource, SourceError

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def progress_percent(accepted: int, target_count: int) -> int:
    """Percent of target reached, rounded half up, capped at 100."""
    if target_count <= 0:
        return 100
    return min(int(accepted * 100 / target_count + 0.5), 100)


@dataclass
class AcquisitionState:
    cursor: str = FIRST_PAGE_CURSOR
    previous_cursor: str | None = None
    seen: DedupIndex = field(default_factory=DedupIndex)
    accepted: list[ReviewItem] = field(default_factory=list)
    consecutive_errors: int = 0
    consecutive_duplicate_pages: int = 0
    pages_fetched: int = 0


class Acquirer:
    def __init__(
        self,
        source: ReviewSource,
        config: Config,
        sleep: Callable[[float], None] | None = None,
    ):
        self._source = source
        self._config = config
        self._retry = RetryPolicy.from_config(config)
        self._sleep = sleep

    def acquire(
        self,
        source_id: str,
        target_count: int,
        on_progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> AcquisitionResult:
        """
        Collect up to `target_count` unique reviews for `source_id`.

        Args:
            source_id: Passed through to the source unchanged.
            target_count: At least config.min_batch_size.
            on_progress: Called as (accepted_count, percent).
            cancel: Checked between pages. When set, the run stops and
                returns what it has with status CANCELLED.

        Returns:
            AcquisitionResult, COMPLETE or PARTIAL (or CANCELLED).

        Raises:
            ValueError: target_count below the minimum batch size.
            TransientSourceError: too many consecutive fetch failures.
            InsufficientData: source ran dry below the minimum batch size.
        """
        minimum = self._config.min_batch_size
        if isinstance(target_count, bool) or not isinstance(target_count, int) or target_count < minimum:
            raise ValueError(f"target_count must be an integer >= {minimum}, got {target_count!r}")

        state = AcquisitionState()
        stop_reason = self._run(state, str(source_id), target_count, on_progress, cancel)

        log.info(
            f"Acquisition for {source_id} stopped ({stop_reason.value}): "
            f"{len(state.accepted)}/{target_count} reviews, {state.pages_fetched} pages"
        )
        return finalize(
            state.accepted,
            target_count,
            stop_reason=stop_reason,
            min_size=minimum,
            pages_fetched=state.pages_fetched,
        )

    def _run(
        self,
        state: AcquisitionState,
        source_id: str,
        target_count: int,
        on_progress: ProgressCallback | None,
        cancel: threading.Event | None,
    ) -> StopReason:
        while len(state.accepted) < target_count:
            if cancel is not None and cancel.is_set():
                return StopReason.CANCELLED

            if state.cursor != FIRST_PAGE_CURSOR and state.cursor == state.previous_cursor:
                log.warning(f"Cursor loop detected for {source_id}, stopping")
                return StopReason.STALLED

            log.debug(
                f"Fetching page {state.pages_fetched + 1} for {source_id}, "
                f"total {len(state.accepted)}/{target_count}, cursor {state.cursor[:30]}"
            )

            last_error: Exception | None = None
            try:
                page = self._source.fetch_page(source_id, state.cursor, self._config.page_size)
            except SourceError as e:
                page = None
                last_error = e

            if page is None or not page.success:
                state.consecutive_errors += 1
                reason = str(last_error) if last_error else "source reported an unsuccessful page"
                if self._retry.exhausted(state.consecutive_errors):
                    log.error(f"Giving up on {source_id} after {state.consecutive_errors} errors: {reason}")
                    raise TransientSourceError(
                        source_id, state.cursor, state.consecutive_errors, reason,
                    ) from last_error

                delay = self._retry.delay(state.consecutive_errors)
                log.warning(
                    f"Page fetch failed for {source_id} "
                    f"({state.consecutive_errors}/{self._retry.max_attempts}), "
                    f"retrying in {delay:.1f}s: {reason}"
                )
                self._pause(delay, cancel)
                continue

            state.consecutive_errors = 0
            state.pages_fetched += 1

            if state.pages_fetched == 1 and page.total_hint is not None:
                log.info(f"Source reports {page.total_hint} reviews for {source_id}")

            if not page.items:
                log.info(f"No more reviews available for {source_id}")
                return StopReason.EXHAUSTED

            fresh = self._filter_new(page.items, state.seen)
            log.info(
                f"Received {len(page.items)} reviews for {source_id}, "
                f"{len(fresh)} unique and valid"
            )

            if not fresh:
                state.consecutive_duplicate_pages += 1
                if state.consecutive_duplicate_pages >= self._config.max_duplicate_pages:
                    log.info(
                        f"Stopping {source_id}: {state.consecutive_duplicate_pages} "
                        f"consecutive pages with only duplicates"
                    )
                    return StopReason.DUPLICATE_LOOP
                stop = self._advance(state, page.next_cursor)
                if stop:
                    return stop
                self._pause(self._config.page_delay_seconds, cancel)
                continue

            state.consecutive_duplicate_pages = 0

            # The remainder of an overshooting page is dropped, not carried over.
            needed = target_count - len(state.accepted)
            state.accepted.extend(fresh[:needed])
            self._report(on_progress, len(state.accepted), target_count)

            if len(state.accepted) >= target_count:
                return StopReason.TARGET_REACHED

            stop = self._advance(state, page.next_cursor)
            if stop:
                return stop
            self._pause(self._config.page_delay_seconds, cancel)

        return StopReason.TARGET_REACHED

    @staticmethod
    def _filter_new(candidates: list[ReviewItem], seen: DedupIndex) -> list[ReviewItem]:
        """
        Drop blank ids and ids already seen, then blank or non-text bodies.
        Ids of blank-body items still count as seen.
        """
        fresh = []
        for item in candidates:
            if not item.item_id or not seen.add(item.item_id):
                continue
            if isinstance(item.body, str) and item.body.strip():
                fresh.append(item)
        return fresh

    @staticmethod
    def _advance(state: AcquisitionState, next_cursor: str) -> StopReason | None:
        if not next_cursor:
            log.info("No more pages available (empty cursor)")
            return StopReason.EXHAUSTED
        if next_cursor == state.cursor:
            log.info("No more pages available (cursor unchanged)")
            return StopReason.STALLED
        state.previous_cursor = state.cursor
        state.cursor = next_cursor
        return None

    @staticmethod
    def _report(on_progress: ProgressCallback | None, accepted: int, target_count: int):
        if on_progress is None:
            return
        try:
            on_progress(accepted, progress_percent(accepted, target_count))
        except Exception as e:
            log.warning(f"Progress observer failed: {e}")

    def _pause(self, seconds: float, cancel: threading.Event | None):
        if seconds <= 0:
            return
        if self._sleep is not None:
            self._sleep(seconds)
        elif cancel is not None:
            # Waiting on the event lets a cancel cut the pause short.
            cancel.wait(seconds)
        else:
            time.sleep(seconds)
