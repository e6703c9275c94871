"""
Content Cache for Source Scanning
=================================

Provides a bounded (path, mtime) cache of file contents so every source
file is read from disk at most once per scan.

Usage:
    from cache import ContentCache

    cache = ContentCache(capacity=500, evict_batch=100)
    text = cache.read("/project/src/app.ts")
"""

from .content_cache import ContentCache

__all__ = ["ContentCache"]
