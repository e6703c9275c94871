"""Go scanner: net/http, Gin, Echo, Fiber, Chi, Gorilla Mux."""
from __future__ import annotations

import re
from typing import Dict, List, Set, Tuple

from .base import (
    BaseExtractor,
    HTTP_METHODS,
    Language,
    PatternDef,
    RawMatch,
    call_arguments,
    find_block_end,
    normalize_method,
)

_UPPER_VERBS = "GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS"
_TITLE_VERBS = "Get|Post|Put|Delete|Patch|Head|Options"

_GROUP = re.compile(
    r'(\w+)\s*:?=\s*(\w+)\s*\.\s*(?:Group|PathPrefix)\s*\(\s*["`]([^"`]*)["`]'
)
_CHI_ROUTE_BLOCK = re.compile(r'\b(\w+)\.Route\s*\(\s*["`]([^"`]*)["`]\s*,\s*func\s*\(\s*(\w+)')
_VERB_CALL = re.compile(
    rf'\b(\w+)\s*\.\s*({_UPPER_VERBS}|{_TITLE_VERBS})\s*\(\s*["`]([^"`]+)["`]'
)
_METHODS_CHAIN = re.compile(r'\s*\.\s*Methods\s*\(([^)]*)\)')
_QUOTED = re.compile(r'["`](\w+)["`]')
_GO122_PATTERN = re.compile(rf'^({_UPPER_VERBS})\s+(/.*)$')
_IDENTIFIER = re.compile(r'^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*$')

# Package-level calls that look like routes but are HTTP clients
_CLIENT_RECEIVERS = {"http", "client", "resty", "req", "resp"}


class GoExtractor(BaseExtractor):
    """Go extractor for chained router calls and HandleFunc registrations."""

    @property
    def language(self) -> Language:
        return Language.GO

    @property
    def extensions(self) -> Set[str]:
        return {".go"}

    @property
    def frameworks(self) -> Set[str]:
        return {"gin", "echo", "fiber", "chi", "gorilla", "go-http"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== GIN / ECHO =====================
            PatternDef(
                regex=rf'\b(\w+)\.({_UPPER_VERBS})\s*\(\s*["`]([^"`]+)["`]',
                framework="gin",
                method_group=2,
                route_group=3,
            ),

            # ===================== FIBER / CHI =====================
            PatternDef(
                regex=rf'\b(\w+)\.({_TITLE_VERBS})\s*\(\s*["`](/[^"`]*)["`]',
                framework="fiber",
                method_group=2,
                route_group=3,
            ),

            # ===================== NET/HTTP / GORILLA MUX =====================
            PatternDef(
                regex=r'\b(\w+)\.(?:HandleFunc|Handle)\s*\(\s*["`]([^"`]+)["`]',
                framework="go-http",
                route_group=2,
            ),
        ]

    def refine_framework(self, framework: str, content: str) -> str:
        if framework == "gin" and "labstack/echo" in content:
            return "echo"
        if framework == "fiber" and "go-chi/chi" in content:
            return "chi"
        if framework == "go-http" and "gorilla/mux" in content:
            return "gorilla"
        return framework

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for match in super().scan_with_patterns(content, path):
            receiver = re.match(r'(\w+)', content[match.offset:]).group(1)
            if receiver in _CLIENT_RECEIVERS and match.framework in ("fiber", "chi"):
                continue
            match.handler = self._handler(content, match.offset)
            if match.framework in ("go-http", "gorilla"):
                results.extend(self._expand_handle(content, match))
            else:
                results.append(match)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        """Apply Group/PathPrefix variables and chi Route blocks as prefixes."""
        groups = self._group_prefixes(content)
        blocks = self._route_blocks(content)
        if not groups and not blocks:
            return []

        results = []
        for m in _VERB_CALL.finditer(content):
            var, verb, route = m.group(1), m.group(2), m.group(3)
            if verb.istitle() and not route.startswith("/"):
                continue
            prefix = groups.get(var, "")
            for start, end, block_prefix, block_var in blocks:
                if start < m.start() < end and var == block_var:
                    prefix = block_prefix
            if not prefix:
                continue
            framework = "gin" if verb.isupper() else "fiber"
            results.append(RawMatch(
                method=normalize_method(verb),
                raw_path=prefix.rstrip('/') + '/' + route.lstrip('/'),
                offset=m.start(),
                source_file=path,
                framework=self.refine_framework(framework, content),
                language=self.language,
                handler=self._handler(content, m.start()),
                metadata={"group_prefix": prefix},
            ))
        return results

    # ------------------------------------------------------------------

    @staticmethod
    def _handler(content: str, offset: int) -> str:
        args = call_arguments(content, offset)
        if len(args) >= 2 and _IDENTIFIER.match(args[-1]):
            return args[-1].split(".")[-1]
        return "handler"

    def _expand_handle(self, content: str, match: RawMatch) -> List[RawMatch]:
        """Resolve the method of a HandleFunc: Go 1.22 "METHOD /path" or gorilla .Methods()."""
        go122 = _GO122_PATTERN.match(match.raw_path)
        if go122:
            match.method = go122.group(1)
            match.raw_path = go122.group(2)
            return [match]

        open_pos = content.find('(', match.offset)
        close_pos = find_block_end(content, open_pos, "(", ")")
        chained = _METHODS_CHAIN.match(content, close_pos)
        if not chained:
            return [match]

        methods = [m.upper() for m in _QUOTED.findall(chained.group(1))]
        methods += re.findall(rf'http\.Method({_TITLE_VERBS})', chained.group(1))
        expanded = []
        for method in dict.fromkeys(m.upper() for m in methods):
            if method not in HTTP_METHODS:
                continue
            expanded.append(RawMatch(
                method=method,
                raw_path=match.raw_path,
                offset=match.offset,
                source_file=match.source_file,
                framework="gorilla",
                language=match.language,
                handler=match.handler,
            ))
        return expanded or [match]

    @staticmethod
    def _group_prefixes(content: str) -> Dict[str, str]:
        """varName := parent.Group("/p"), resolved through nested groups."""
        groups: Dict[str, str] = {}
        for m in _GROUP.finditer(content):
            var, parent, prefix = m.group(1), m.group(2), m.group(3)
            base = groups.get(parent, "")
            groups[var] = base.rstrip('/') + '/' + prefix.strip('/') if base else prefix
        return groups

    @staticmethod
    def _route_blocks(content: str) -> List[Tuple[int, int, str, str]]:
        """chi r.Route("/p", func(r chi.Router) {...}) bodies with their accumulated prefix."""
        blocks: List[Tuple[int, int, str, str]] = []
        for m in _CHI_ROUTE_BLOCK.finditer(content):
            open_pos = content.find('{', m.end())
            if open_pos == -1:
                continue
            end = find_block_end(content, open_pos)
            prefix = m.group(2)
            enclosing = [b for b in blocks if b[0] < m.start() < b[1]]
            if enclosing:
                outer = max(enclosing, key=lambda b: b[0])[2]
                prefix = outer.rstrip('/') + '/' + prefix.strip('/')
            blocks.append((open_pos, end, prefix, m.group(3)))
        return blocks
