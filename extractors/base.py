"""
Shared raw-match model and BaseExtractor for the polyglot endpoint scanner.

Every language/framework extractor imports from this module.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Dict, List, NamedTuple, Optional, Set

logger = logging.getLogger("endpoint_scanner.extractors")


# =============================================================================
# ENUMS
# =============================================================================

class Language(Enum):
    PYTHON = "Python"
    DOTNET = "C#/.NET"
    GO = "Go"
    JAVA = "Java"
    JAVASCRIPT = "JavaScript"
    TYPESCRIPT = "TypeScript"
    RUBY = "Ruby"
    RUST = "Rust"
    PHP = "PHP"
    KOTLIN = "Kotlin"
    ELIXIR = "Elixir"
    GRAPHQL = "GraphQL"
    PROTOBUF = "Protobuf"
    UNKNOWN = "Unknown"


HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

METHOD_ALIASES = {
    "DEL": "DELETE",
    "OPTS": "OPTIONS",
}


# =============================================================================
# DATA STRUCTURES
# =============================================================================

class PatternDef(NamedTuple):
    """Definition of a route detection pattern."""
    regex: str
    framework: str
    method_group: Optional[int] = None   # Regex group for HTTP method
    route_group: Optional[int] = None    # Regex group for route
    method: str = "GET"                  # Fixed method when no method group
    handler_group: Optional[int] = None  # Regex group for handler name
    flags: int = re.MULTILINE


@dataclass
class RawMatch:
    """A route declaration found in one file, before contract mining."""
    method: str
    raw_path: str
    offset: int
    source_file: str
    framework: str
    language: Language
    handler: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def sort_key(self):
        return (self.source_file, self.offset, self.method, self.raw_path)


def normalize_method(value: Optional[str], default: str = "GET") -> str:
    method = (value or default).upper()
    return METHOD_ALIASES.get(method, method)


# =============================================================================
# TEXT HELPERS
# =============================================================================

def combine_routes(base_route: str, method_route: str) -> str:
    """Combine a class/group level base route with a method-level route."""
    base = base_route.strip('/') if base_route else ""
    method = method_route.strip('/') if method_route else ""

    if method_route and method_route.startswith("~/"):
        return "/" + method_route[2:].lstrip('/')

    if base and method:
        return f"/{base}/{method}"
    elif base:
        return f"/{base}"
    elif method:
        return f"/{method}"
    else:
        return "/"


def find_block_end(content: str, open_pos: int, open_char: str = "{", close_char: str = "}") -> int:
    """
    Return the index just past the bracket that closes the one at open_pos.

    Brackets inside string literals are not special-cased; when the block is
    unbalanced the end of content is returned.
    """
    depth = 1
    pos = open_pos + 1
    while depth > 0 and pos < len(content):
        ch = content[pos]
        if ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
        pos += 1
    return pos


def split_arguments(text: str) -> List[str]:
    """
    Split a call argument list on top-level commas.

    Stops at the parenthesis that closes the call, so text may run past the
    end of the argument list.
    """
    args: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []

    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', '`'):
            quote = ch
            current.append(ch)
        elif ch in "([{":
            depth += 1
            current.append(ch)
        elif ch in ")]}":
            if depth == 0:
                break
            depth -= 1
            current.append(ch)
        elif ch == ',' and depth == 0:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(ch)

    tail = "".join(current).strip()
    if tail:
        args.append(tail)
    return args


def call_arguments(content: str, offset: int, limit: int = 4000) -> List[str]:
    """Top-level arguments of the first call opened at or after offset."""
    open_pos = content.find('(', offset)
    if open_pos == -1:
        return []
    return split_arguments(content[open_pos + 1:open_pos + 1 + limit])


def line_of(content: str, offset: int) -> int:
    return content.count('\n', 0, offset) + 1


_CLASS_DECL = re.compile(r'\b(?:class|interface|object)\s+(\w+)[^{;=]*\{')
_HEADER_BREAK = re.compile(r'[;}]\s*\n')
_STATEMENT_BREAK = re.compile(r"(?:[;}]|\}\))[ \t]*\n|\n[ \t]*\n")


@dataclass
class ClassSpan:
    """A brace-delimited class body and the annotation run preceding it."""
    name: str
    header_start: int
    decl_start: int
    body_start: int
    body_end: int
    header: str

    def contains(self, offset: int) -> bool:
        return self.body_start < offset < self.body_end


def class_spans(content: str, decl: re.Pattern = _CLASS_DECL, lookback: int = 500) -> List[ClassSpan]:
    """
    Locate class bodies by brace matching.

    The header is the text between the previous statement end and the class
    keyword, which holds the class-level decorators or annotations.
    """
    spans = []
    for m in decl.finditer(content):
        body_start = m.end() - 1
        header_start = max(0, m.start() - lookback)
        header = content[header_start:m.start()]
        breaks = list(_HEADER_BREAK.finditer(header))
        if breaks:
            header_start += breaks[-1].end()
            header = content[header_start:m.start()]
        spans.append(ClassSpan(
            name=m.group(1),
            header_start=header_start,
            decl_start=m.start(),
            body_start=body_start,
            body_end=find_block_end(content, body_start),
            header=header,
        ))
    return spans


def annotation_start(content: str, offset: int, lower: int = 0, lookback: int = 500) -> int:
    """
    Start of the decorator or annotation run preceding the declaration at offset.

    Stops after the previous statement end, block end or blank line, never
    before lower.
    """
    start = max(lower, offset - lookback)
    breaks = list(_STATEMENT_BREAK.finditer(content, start, offset))
    return breaks[-1].end() if breaks else start


def innermost_span(spans: List[ClassSpan], offset: int) -> Optional[ClassSpan]:
    best = None
    for span in spans:
        if span.contains(offset) and (best is None or span.body_start > best.body_start):
            best = span
    return best


# =============================================================================
# BASE EXTRACTOR (Abstract)
# =============================================================================

class BaseExtractor(ABC):
    """
    Abstract base class for all route extractors.

    An extractor is a pure function of file content: scan() never keeps
    state between calls, so one instance can serve several worker threads.
    """

    @property
    @abstractmethod
    def language(self) -> Language:
        """The primary language this extractor handles."""
        pass

    @property
    @abstractmethod
    def extensions(self) -> Set[str]:
        """File extensions this extractor processes."""
        pass

    @property
    @abstractmethod
    def frameworks(self) -> Set[str]:
        """Framework tags this extractor is registered under."""
        pass

    @property
    def patterns(self) -> List[PatternDef]:
        """List of regex patterns for detection."""
        return []

    def accepts(self, path: str) -> bool:
        name = PurePosixPath(path).name.lower()
        if name.endswith(".d.ts"):
            return False
        return any(name.endswith(ext) for ext in self.extensions)

    def language_for(self, path: str) -> Language:
        return self.language

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        """Scan content using defined patterns."""
        results = []
        language = self.language_for(path)

        for pattern_def in self.patterns:
            try:
                for match in re.finditer(pattern_def.regex, content, pattern_def.flags):
                    groups = match.groups()

                    method = pattern_def.method
                    if pattern_def.method_group is not None and len(groups) >= pattern_def.method_group:
                        method = groups[pattern_def.method_group - 1] or method

                    route = "/"
                    if pattern_def.route_group is not None and len(groups) >= pattern_def.route_group:
                        route = groups[pattern_def.route_group - 1] or route

                    handler = None
                    if pattern_def.handler_group is not None and len(groups) >= pattern_def.handler_group:
                        handler = groups[pattern_def.handler_group - 1]

                    results.append(RawMatch(
                        method=normalize_method(method),
                        raw_path=route,
                        offset=match.start(),
                        source_file=path,
                        framework=self.refine_framework(pattern_def.framework, content),
                        language=language,
                        handler=handler,
                    ))
            except re.error:
                continue

        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        """Override in subclasses for prefix-aware or structural rules."""
        return []

    def refine_framework(self, framework: str, content: str) -> str:
        return framework

    def scan(self, content: str, path: str) -> List[RawMatch]:
        """
        Scan a file using both patterns and heuristics.

        A heuristic match at the same (offset, method) as a pattern match
        replaces it, e.g. to apply a group or class prefix.
        """
        results = self.scan_with_patterns(content, path)

        try:
            refined = self.scan_with_heuristics(content, path)
        except Exception as e:
            logger.debug(f"Heuristic pass of {type(self).__name__} failed on {path}: {e}")
            refined = []

        if refined:
            taken = {(m.offset, m.method) for m in refined}
            results = [m for m in results if (m.offset, m.method) not in taken]
            results.extend(refined)

        results.sort(key=lambda m: (m.offset, m.method, m.raw_path))
        return results
