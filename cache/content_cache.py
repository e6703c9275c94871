"""
Content Cache
=============
Bounded in-memory cache of source file contents, keyed by path and
validated by modification time.

One cache is created per scan and owned by the SourceWalker; it is safe to
share between the worker threads of a parallel scan.
"""

import logging
import os
from collections import OrderedDict
from threading import Lock
from typing import Dict, Optional, Tuple

logger = logging.getLogger("endpoint_scanner.cache")


class ContentCache:
    """
    (path, mtime) keyed file content cache.

    Cache Strategy:
    - Key: absolute path; entry valid while st_mtime_ns is unchanged
    - Capacity: `capacity` entries (default: 500)
    - Eviction: once capacity is exceeded, the `evict_batch` oldest
      inserted entries are dropped at once (default: 100)

    Usage:
        cache = ContentCache(capacity=500, evict_batch=100)
        text = cache.read("/project/app.py")
    """

    def __init__(self, capacity: int = 500, evict_batch: int = 100):
        self.capacity = max(1, capacity)
        self.evict_batch = max(1, min(evict_batch, self.capacity))
        self._entries: "OrderedDict[str, Tuple[int, str]]" = OrderedDict()
        self._lock = Lock()

        # Statistics
        self.stats = {"hits": 0, "misses": 0, "sets": 0, "evictions": 0}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: str) -> bool:
        with self._lock:
            return path in self._entries

    def get(self, path: str, mtime_ns: int) -> Optional[str]:
        """Return cached content for path if it was stored at this mtime."""
        with self._lock:
            entry = self._entries.get(path)
            if entry is None or entry[0] != mtime_ns:
                self.stats["misses"] += 1
                return None
            self.stats["hits"] += 1
            return entry[1]

    def set(self, path: str, mtime_ns: int, content: str):
        with self._lock:
            if path in self._entries:
                del self._entries[path]
            self._entries[path] = (mtime_ns, content)
            self.stats["sets"] += 1

            if len(self._entries) > self.capacity:
                evicted = 0
                while self._entries and evicted < self.evict_batch:
                    self._entries.popitem(last=False)
                    evicted += 1
                self.stats["evictions"] += evicted
                logger.debug(f"Evicted {evicted} cached files ({len(self._entries)} remain)")

    def read(self, path: str) -> str:
        """
        Read a file through the cache.

        Raises:
            OSError: if the file cannot be stat'ed or read
        """
        mtime_ns = os.stat(path).st_mtime_ns
        cached = self.get(path, mtime_ns)
        if cached is not None:
            return cached

        with open(path, 'r', encoding='utf-8', errors='ignore') as f:
            content = f.read()

        self.set(path, mtime_ns, content)
        return content

    def clear(self):
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            total = self.stats["hits"] + self.stats["misses"]
            return {
                **self.stats,
                "entries": len(self._entries),
                "hit_rate": round(self.stats["hits"] / total * 100, 1) if total else 0.0,
            }
