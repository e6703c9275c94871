"""Rate-limit, cache and API-version directives."""
import re
from typing import Any, Optional

from extractors.models import CacheDirective, RateLimit

_EXPRESS_RATE_LIMIT = re.compile(r'rateLimit\s*\(\s*\{[^}]*windowMs\s*:\s*([\d_.*\s]+?)\s*,[^}]*max\s*:\s*(\w+)')
_THROTTLE = re.compile(r'@Throttle\s*\(\s*(\w+)\s*,\s*(\w+)\s*\)')
_SLOWAPI = re.compile(r'limiter\.limit\s*\(\s*["\']([^"\']+)["\']\s*\)')
_RESILIENCE4J = re.compile(r'@RateLimiter\s*\(\s*name\s*=\s*["\']([^"\']+)["\']')

_CACHE_CONTROL = re.compile(r'[\'"]Cache-Control[\'"]\s*[,:]\s*[\'"]([^"\']+)[\'"]', re.IGNORECASE)
_MAX_AGE = re.compile(r'max-age=(\w+)')
_CACHE_TTL = re.compile(r'@CacheTTL\s*\(\s*(\w+)\s*\)')
_CACHEABLE = re.compile(r'@Cacheable\s*\(\s*(?:(?:value|cacheNames)\s*=\s*)?["\']([^"\']+)["\']')
_FASTAPI_CACHE = re.compile(r'@cache\s*\(\s*expire\s*=\s*(\w+)')

_PATH_VERSION = re.compile(r'/v(\d+(?:\.\d+)?)(?=/|$)')
_API_VERSION = re.compile(r'@ApiVersion\s*\(\s*["\']([^"\']+)["\']\s*\)')
_PRODUCES_VERSION = re.compile(r'produces\s*=\s*["\'][^"\']*version=(\d+)')


def to_int(value: Any) -> Optional[int]:
    """int(value), or None when value is not a plain integer literal."""
    if value is None:
        return None
    try:
        return int(str(value).replace("_", "").strip())
    except ValueError:
        return None


def _window_seconds(expression: str) -> Optional[str]:
    # windowMs is often written as 15 * 60 * 1000
    factors = [to_int(part) for part in expression.split("*")]
    if not factors or any(f is None for f in factors):
        return None
    total = 1
    for factor in factors:
        total *= factor
    seconds = total / 1000
    return f"{int(seconds) if seconds.is_integer() else seconds}s"


def extract_rate_limit(content: str) -> Optional[RateLimit]:
    m = _EXPRESS_RATE_LIMIT.search(content)
    if m:
        return RateLimit(limit=to_int(m.group(2)), window=_window_seconds(m.group(1)))

    m = _THROTTLE.search(content)
    if m:
        seconds = to_int(m.group(2))
        return RateLimit(limit=to_int(m.group(1)), window=f"{seconds}s" if seconds is not None else None)

    m = _SLOWAPI.search(content)
    if m:
        limit, _, window = m.group(1).partition("/")
        return RateLimit(limit=to_int(limit), window=window.strip() or "minute")

    m = _RESILIENCE4J.search(content)
    if m:
        return RateLimit(limit=10, window="1s", key=m.group(1))

    return None


def _cache_strategy(directive: str) -> str:
    if "private" in directive:
        return "private"
    if "public" in directive:
        return "public"
    if "no-cache" in directive:
        return "no-cache"
    return "no-store"


def extract_cache(content: str) -> Optional[CacheDirective]:
    m = _CACHE_CONTROL.search(content)
    if m:
        max_age = _MAX_AGE.search(m.group(1))
        return CacheDirective(
            ttl=to_int(max_age.group(1)) if max_age else None,
            strategy=_cache_strategy(m.group(1)),
        )

    m = _CACHE_TTL.search(content)
    if m:
        return CacheDirective(ttl=to_int(m.group(1)))

    m = _CACHEABLE.search(content)
    if m:
        return CacheDirective(tags=[m.group(1)])

    m = _FASTAPI_CACHE.search(content)
    if m:
        return CacheDirective(ttl=to_int(m.group(1)))

    return None


def detect_api_version(path: str, window: str) -> Optional[str]:
    m = _PATH_VERSION.search(path)
    if m:
        return f"v{m.group(1)}"

    m = _API_VERSION.search(window)
    if m:
        return m.group(1)

    m = _PRODUCES_VERSION.search(window)
    if m:
        return f"v{m.group(1)}"

    return None
