"""
Dependency Analyzer
===================
Finds literal internal API calls (/api/... targets of HTTP client calls) and
external hostnames in a handler, then resolves reverse edges across the full
endpoint set.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from extractors.models import Endpoint
from extractors.paths import normalize_path, placeholder_template

from .models import DependencyReport
from .text import forward

logger = logging.getLogger("endpoint_scanner.analytics.dependencies")

WINDOW = 5000
LOCAL_HOSTS = ("localhost", "127.0.0.1")

INTERNAL_CALLS = [
    re.compile(r'fetch\s*\(\s*[\'"`](/api/[^\'"`?#]+)'),
    re.compile(r'axios\.[a-z]+\s*\(\s*[\'"`](/api/[^\'"`?#]+)'),
    re.compile(r'request\s*\(\s*[\'"`](/api/[^\'"`?#]+)'),
    re.compile(r'(?:requests|httpx)\.[a-z]+\s*\(\s*f?[\'"](/api/[^\'"?#]+)'),
]
EXTERNAL_CALLS = [
    re.compile(r'fetch\s*\(\s*[\'"`](https?://[^\'"`]+)'),
    re.compile(r'axios\.[a-z]+\s*\(\s*[\'"`](https?://[^\'"`]+)'),
    re.compile(r'(?:requests|httpx)\.[a-z]+\s*\(\s*f?[\'"](https?://[^\'"]+)'),
]
TEMPLATE_EXPR = re.compile(r'\$\{[^}]*\}')


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or url[:50]
    except ValueError:
        return url[:50]


def analyze_dependencies(endpoint: Endpoint, content: str, upper: Optional[int] = None) -> DependencyReport:
    window = forward(content, endpoint.offset, WINDOW, upper)
    report = DependencyReport()

    for pattern in INTERNAL_CALLS:
        for m in pattern.finditer(window):
            # template literal expressions become path parameters
            called = normalize_path(TEMPLATE_EXPR.sub("{param}", m.group(1)))
            if called not in report.calls_endpoints:
                report.calls_endpoints.append(called)

    for pattern in EXTERNAL_CALLS:
        for m in pattern.finditer(window):
            url = m.group(1)
            if any(host in url for host in LOCAL_HOSTS):
                continue
            host = _hostname(url)
            if host not in report.external_apis:
                report.external_apis.append(host)

    return report


def link_dependencies(endpoints: List[Endpoint]) -> None:
    """Fill called_by_endpoints from every endpoint's calls_endpoints."""
    by_template = {}
    for ep in endpoints:
        by_template.setdefault(placeholder_template(ep.path), []).append(ep)

    links = 0
    for caller in endpoints:
        if caller.analytics is None:
            continue
        for called_path in caller.analytics.dependencies.calls_endpoints:
            for target in by_template.get(placeholder_template(called_path), []):
                if target.analytics is None:
                    continue
                called_by = target.analytics.dependencies.called_by_endpoints
                if caller.label not in called_by:
                    called_by.append(caller.label)
                    links += 1

    if links:
        logger.debug(f"Resolved {links} reverse dependency edges")
