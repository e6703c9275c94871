"""
Naming Convention Analyzer
==========================
REST naming score for a path: starts at 100 with fixed deductions.

    verb in path                 -15
    mixed case styles            -10
    camelCase segment             -5
    uppercase letters             -5
    file extension suffix         -5
    more than 5 segments         -10
    singular collection segment   -5

Only literal segments are inspected; parameter names are the handler's
business.
"""

import re
from typing import List

from extractors.models import Endpoint
from extractors.paths import is_param_segment, path_param_names

from .models import NamingReport

RESTFUL_RESOURCES = {
    "users", "posts", "items", "products", "orders", "comments", "categories", "tags",
    "files", "images", "documents", "messages", "notifications", "settings", "profiles", "accounts",
}
SINGULAR_ALLOWED = {"api", "auth", "graphql", "health", "login", "logout", "me", "admin", "ws", "rpc"}

VERB_IN_PATH = re.compile(
    r"/(?i:get|create|update|delete|add|remove|edit|fetch|save|load|find|search|list)(?=$|/|[-_]|[A-Z])"
)
KEBAB = re.compile(r'^[a-z]+(?:-[a-z]+)+$')
CAMEL = re.compile(r'^[a-z]+[A-Z][a-z]+')
SNAKE = re.compile(r'^[a-z]+(?:_[a-z]+)+$')
EXTENSION = re.compile(r'\.(?:json|xml|html)$', re.IGNORECASE)
MAX_DEPTH = 5


def literal_segments(path: str) -> List[str]:
    return [s for s in path.split("/") if s and not is_param_segment(s) and not s.startswith(":")]


def _is_resource_noun(segment: str) -> bool:
    return (
        segment in RESTFUL_RESOURCES
        or segment.rstrip("s") + "s" in RESTFUL_RESOURCES
        or bool(re.match(r'^[a-z]+s$', segment))
    )


def analyze_naming(endpoint: Endpoint) -> NamingReport:
    path = endpoint.path
    segments = literal_segments(path)
    report = NamingReport()

    def deduct(points: int, issue: str):
        report.score -= points
        report.issues.append(issue)

    has_verb = bool(VERB_IN_PATH.search("/" + "/".join(segments)))
    if has_verb:
        deduct(15, "Verb used in URL (let the HTTP method express the action)")

    report.uses_kebab_case = any(KEBAB.match(s) for s in segments)
    report.uses_camel_case = any(CAMEL.match(s) for s in segments)
    report.uses_snake_case = any(SNAKE.match(s) for s in segments)

    if sum([report.uses_kebab_case, report.uses_camel_case, report.uses_snake_case]) > 1:
        deduct(10, "Mixed case styles in URL (use one style consistently)")
    if report.uses_camel_case:
        deduct(5, "camelCase in URL (kebab-case recommended)")
    if any(re.search(r'[A-Z]', s) for s in segments):
        deduct(5, "Uppercase letters in URL (lowercase recommended)")
    if EXTENSION.search(path):
        deduct(5, "File extension in URL (use the Content-Type header)")
    if len(segments) > MAX_DEPTH:
        deduct(10, f"URL nesting too deep ({MAX_DEPTH} levels or fewer recommended)")
    if any(re.match(r'^[a-z]+$', s) and not s.endswith("s") and s not in SINGULAR_ALLOWED for s in segments):
        deduct(5, "Plural nouns recommended for collection resources")

    report.follows_restful = (
        any(_is_resource_noun(s) for s in segments)
        and len(path_param_names(path)) <= 2
        and not has_verb
    )
    report.score = max(0, report.score)
    return report
