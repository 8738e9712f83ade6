"""
Shared fixtures: a scripted review source, a fake HTTP session and a test config.
"""

import sys
import tempfile
import threading
from pathlib import Path

import pytest
import requests

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Config
from models import PageResult, ReviewItem
from sources.base import ReviewSource


def make_items(start: int, count: int, prefix: str = "r") -> list[ReviewItem]:
    """Reviews with ids prefix{start} .. prefix{start+count-1}."""
    return [
        ReviewItem(item_id=f"{prefix}{i}", body=f"Review number {i}", author={"steamid": str(i)})
        for i in range(start, start + count)
    ]


def make_page(start: int, count: int, next_cursor: str, prefix: str = "r") -> PageResult:
    return PageResult(success=True, items=make_items(start, count, prefix), next_cursor=next_cursor)


class ScriptedSource(ReviewSource):
    """
    Plays back a fixed list of responses, one per fetch_page() call.
    An Exception entry is raised instead of returned. Once the script
    runs out, every call returns an empty page.
    """

    def __init__(self, steps: list, gate: threading.Event | None = None):
        self._steps = list(steps)
        self._gate = gate
        self.entered = threading.Event()
        self.calls: list[tuple[str, str, int]] = []

    def name(self) -> str:
        return "scripted"

    def fetch_page(self, source_id: str, cursor: str, page_size: int) -> PageResult:
        self.entered.set()
        if self._gate is not None:
            self._gate.wait(5)
        self.calls.append((source_id, cursor, page_size))
        if not self._steps:
            return PageResult(success=True)
        step = self._steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def cursors(self) -> list[str]:
        return [cursor for _, cursor, _ in self.calls]


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, bad_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Records get() calls and answers with queued responses or exceptions."""

    def __init__(self, *responses):
        self.headers: dict = {}
        self.requests: list[tuple[str, dict]] = []
        self._responses = list(responses)

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params or {}))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config():
    """Config with no pauses and a throwaway database."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Config(
            db_path=Path(tmpdir) / "test.db",
            page_delay_seconds=0,
            retry_backoff_seconds=0,
            retry_backoff_factor=1.0,
            max_consecutive_errors=3,
            max_duplicate_pages=5,
            min_batch_size=100,
            default_target=200,
            page_size=100,
        )
