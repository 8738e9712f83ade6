"""
Single-flight registry for callers: at most one acquisition per source
at a time. The engine itself never consults this.
"""

import threading


class InFlightRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._running: set[str] = set()

    def claim(self, source_id: str) -> bool:
        """Mark a source as running. Returns False if it already was."""
        with self._lock:
            if source_id in self._running:
                return False
            self._running.add(source_id)
            return True

    def release(self, source_id: str):
        with self._lock:
            self._running.discard(source_id)
