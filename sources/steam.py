"""
Steam review source. Uses the public store `appreviews` endpoint,
which pages with an opaque cursor.

Notes:
- No auth required.
- num_per_page is capped at 100 by Steam.
- The endpoint answers HTTP 200 with success != 1 when it refuses a
  page; that is reported as an unsuccessful PageResult, not raised.
"""

import logging

import requests

from config.settings import Config
from models import PageResult, ReviewItem
from sources.base import ReviewSource, SourceError

log = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class SteamReviewSource(ReviewSource):
    def __init__(self, config: Config, session: requests.Session | None = None):
        self._config = config
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = "review-harvest/0.1"

    def name(self) -> str:
        return "steam"

    def fetch_page(self, source_id: str, cursor: str, page_size: int) -> PageResult:
        params = {
            "json": 1,
            "cursor": cursor,
            "num_per_page": max(1, min(MAX_PAGE_SIZE, int(page_size))),
            "filter": self._config.review_filter,
            "language": self._config.review_language,
            "review_type": "all",
            "purchase_type": "all",
        }
        url = f"{self._config.review_api_url.rstrip('/')}/{source_id}"

        try:
            resp = self._session.get(url, params=params, timeout=self._config.request_timeout)
        except requests.RequestException as e:
            raise SourceError(f"Steam appreviews request failed for {source_id}: {e}") from e

        if resp.status_code != 200:
            raise SourceError(f"Steam appreviews HTTP {resp.status_code} for {source_id}")

        try:
            data = resp.json()
        except ValueError as e:
            raise SourceError(f"Steam appreviews returned invalid JSON for {source_id}") from e

        if not isinstance(data, dict):
            raise SourceError(f"Steam appreviews returned unexpected payload for {source_id}")

        if data.get("success") != 1:
            log.warning(f"Steam appreviews returned success={data.get('success')} for {source_id}")
            return PageResult(success=False)

        summary = data.get("query_summary") or {}
        reviews = data.get("reviews") or []
        cursor = data.get("cursor") or ""
        if not isinstance(summary, dict) or not isinstance(reviews, list) or not isinstance(cursor, str):
            raise SourceError(f"Steam appreviews returned a malformed page for {source_id}")

        total_hint = summary.get("total_reviews")
        return PageResult(
            success=True,
            items=[self._parse_review(r) for r in reviews if isinstance(r, dict)],
            next_cursor=cursor,
            total_hint=total_hint if isinstance(total_hint, int) else None,
        )

    def fetch_display_name(self, source_id: str) -> str:
        """
        Look up the store name for an app. Best effort: falls back to the
        app id when the store has nothing usable.
        """
        try:
            resp = self._session.get(
                self._config.app_details_url,
                params={"appids": source_id, "l": "english"},
                timeout=self._config.request_timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            log.warning(f"Steam appdetails lookup failed for {source_id}: {e}")
            return str(source_id)

        entry = (data or {}).get(str(source_id)) or {}
        if not entry.get("success"):
            return str(source_id)
        return (entry.get("data") or {}).get("name") or str(source_id)

    @staticmethod
    def _parse_review(review: dict) -> ReviewItem:
        rec_id = review.get("recommendationid")
        author = review.get("author")
        body = review.get("review")
        # Non-text bodies become blank and are dropped downstream
        return ReviewItem(
            item_id=str(rec_id) if rec_id is not None else "",
            body=body if isinstance(body, str) else "",
            author=author if isinstance(author, dict) else {},
        )
