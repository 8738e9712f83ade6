"""
Dedup index for one acquisition run. Append-only: nothing is ever removed.
"""


class DedupIndex:
    def __init__(self):
        self._seen: set[str] = set()

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, item_id: str) -> bool:
        """Record an id. Returns True if it was not seen before."""
        if item_id in self._seen:
            return False
        self._seen.add(item_id)
        return True
