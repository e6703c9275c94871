"""
Canonicalizer & Grouper.

Identity key = (METHOD, path template with every placeholder reduced to {},
source file). Matches are ordered by (source file, offset) before keys are
resolved, so the surviving record does not depend on scan order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from extractors.models import Endpoint, Group
from extractors.paths import is_param_segment, normalize_path, placeholder_template

logger = logging.getLogger("endpoint_scanner.engine.canonical")

__all__ = ["normalize_path", "canonical_key", "canonicalize", "merge_into", "group_prefix", "group_endpoints"]

CanonicalKey = Tuple[str, str, str]


def canonical_key(endpoint: Endpoint) -> CanonicalKey:
    return (endpoint.method.upper(), placeholder_template(normalize_path(endpoint.path)), endpoint.source_file)


def merge_into(target: Endpoint, other: Endpoint) -> None:
    """Union-merge a later duplicate into the surviving endpoint."""
    for param in other.parameters:
        target.add_parameter(param)

    if target.request_body is None:
        target.request_body = other.request_body
    if target.validation is None:
        target.validation = other.validation
    if target.rate_limit is None:
        target.rate_limit = other.rate_limit
    if target.cache is None:
        target.cache = other.cache
    if not target.description:
        target.description = other.description
    if not target.summary:
        target.summary = other.summary
    if target.auth == "none":
        target.auth = other.auth
    if target.api_version is None:
        target.api_version = other.api_version

    known = {r.status_code for r in target.responses}
    for response in other.responses:
        if response.status_code not in known:
            target.responses.append(response)
            known.add(response.status_code)
    target.responses.sort(key=lambda r: r.status_code)

    for name in other.middleware:
        if name not in target.middleware:
            target.middleware.append(name)
    for tag in other.tags:
        if tag not in target.tags:
            target.tags.append(tag)
    target.deprecated = target.deprecated or other.deprecated
    target.is_async = target.is_async or other.is_async


def canonicalize(endpoints: List[Endpoint], merge: bool = False) -> List[Endpoint]:
    """
    Deduplicate endpoints by canonical key; the first in (file, offset) order wins.

    With merge=False later duplicates are dropped entirely. With merge=True
    their parameters, responses and middleware are unioned into the survivor
    and its missing optional fields are filled in.
    """
    ordered = sorted(endpoints, key=lambda e: (e.source_file, e.offset))
    survivors: Dict[CanonicalKey, Endpoint] = {}
    dropped = 0

    for endpoint in ordered:
        key = canonical_key(endpoint)
        existing = survivors.get(key)
        if existing is None:
            survivors[key] = endpoint
            continue
        dropped += 1
        if merge:
            merge_into(existing, endpoint)

    if dropped:
        logger.debug(f"Canonicalization {'merged' if merge else 'dropped'} {dropped} duplicate matches")
    return list(survivors.values())


def group_prefix(path: str) -> str:
    for segment in path.split("/"):
        if segment and not is_param_segment(segment):
            return "/" + segment
    return "/"


def group_endpoints(endpoints: List[Endpoint]) -> List[Group]:
    groups: Dict[str, Group] = {}
    for endpoint in endpoints:
        prefix = group_prefix(endpoint.path)
        groups.setdefault(prefix, Group(prefix=prefix)).endpoints.append(endpoint)

    result = []
    for prefix in sorted(groups):
        group = groups[prefix]
        group.endpoints.sort(key=lambda e: (e.path, e.method))
        result.append(group)
    return result
