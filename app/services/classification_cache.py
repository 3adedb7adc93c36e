"""
SHA-1 keyed memoization of urgency classifications
"""
import hashlib
from typing import Dict, Optional, Tuple

from app.logging_config import logger
from app.models import ClassificationResult


class ClassificationCache:
    """Remembers classifier answers per complaint id and text hash.

    Editing a complaint's text changes the hash, so a stale answer is never
    reused. A cached None ("not urgent") is remembered too.
    """

    def __init__(self, max_entries: int = 10000):
        """
        Initialize classification cache

        Args:
            max_entries: Oldest entries are evicted beyond this size
        """
        self.max_entries = max_entries
        self._entries: Dict[Tuple[str, str], Optional[ClassificationResult]] = {}
        self.hits = 0
        self.misses = 0
        logger.info(f"Classification cache initialized with max entries: {max_entries}")

    @staticmethod
    def text_hash(text: str) -> str:
        return hashlib.sha1(text.encode('utf-8')).hexdigest()

    def key_for(self, complaint_id: str, text: str) -> Tuple[str, str]:
        return complaint_id, self.text_hash(text)

    def contains(self, complaint_id: str, text: str) -> bool:
        return self.key_for(complaint_id, text) in self._entries

    def get(self, complaint_id: str, text: str) -> Optional[ClassificationResult]:
        """Cached result; check `contains` first to tell a miss from a cached None"""
        key = self.key_for(complaint_id, text)
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, complaint_id: str, text: str, result: Optional[ClassificationResult]) -> None:
        key = self.key_for(complaint_id, text)
        self._entries.pop(key, None)
        self._entries[key] = result
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        logger.debug(f"Cached classification for {complaint_id}, cache size: {len(self._entries)}")

    def clear(self):
        """Clear the cache"""
        cache_size = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared classification cache, removed {cache_size} entries")

    def __len__(self) -> int:
        return len(self._entries)
