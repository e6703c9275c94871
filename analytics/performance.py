"""Caching / compression / pagination detection and a coarse latency estimate."""

import re
from typing import Optional

from extractors.models import Endpoint

from .models import Latency, PerformanceReport
from .text import count, forward

WINDOW = 3000

CACHING = re.compile(r'redis|memcache|cache\.|@Cache|\.setex\(|unstable_cache|revalidate', re.IGNORECASE)
COMPRESSION = re.compile(r'gzip|compress|deflate|@Compress|compression\(', re.IGNORECASE)
PAGINATION_KEYWORD = re.compile(r'page|limit|offset|skip|take|cursor|pagination', re.IGNORECASE)
NUMERIC_PARSE = re.compile(r'\d+|parseInt|Number\(|int\(', re.IGNORECASE)
EXTERNAL_CALL = re.compile(r'fetch\(|axios\.|http\.get|https\.get|requests\.(?:get|post)|httpx\.', re.IGNORECASE)
DB_CALL = re.compile(r'prisma\.|mongoose\.|\.find|\.query', re.IGNORECASE)
FILE_IO = re.compile(r'readFile|writeFile|streams', re.IGNORECASE)


def estimate_latency(window: str) -> Latency:
    if EXTERNAL_CALL.search(window):
        return Latency.HIGH
    db_calls = count(DB_CALL, window)
    if db_calls > 3:
        return Latency.HIGH
    if db_calls:
        return Latency.MEDIUM
    if FILE_IO.search(window):
        return Latency.MEDIUM
    return Latency.LOW


def analyze_performance(endpoint: Endpoint, content: str, upper: Optional[int] = None) -> PerformanceReport:
    window = forward(content, endpoint.offset, WINDOW, upper)
    return PerformanceReport(
        has_caching=endpoint.cache is not None or bool(CACHING.search(window)),
        has_compression=bool(COMPRESSION.search(window)),
        has_pagination=bool(PAGINATION_KEYWORD.search(window) and NUMERIC_PARSE.search(window)),
        estimated_latency=estimate_latency(window),
    )
