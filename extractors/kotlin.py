"""Kotlin scanner: Ktor routing DSL."""
from __future__ import annotations

import re
from typing import List, Set, Tuple

from .base import BaseExtractor, Language, RawMatch, find_block_end

_KTOR_ROUTE_BLOCK = re.compile(r'\broute\s*\(\s*"([^"]*)"\s*\)\s*\{')
_KTOR_VERB = re.compile(r'\b(get|post|put|patch|delete|head|options)\s*(?:\(\s*(?:"([^"]*)")?\s*\))?\s*\{')
_KTOR_RESOURCE = re.compile(r'\b(get|post|put|patch|delete)\s*<\s*(\w+)\s*>\s*\{')
_RESOURCE_CLASS = r'@Resource\s*\(\s*"([^"]*)"\s*\)\s*(?:data\s+)?class\s+{name}\b'


def join_path(prefix: str, route: str) -> str:
    parts = [p.strip("/") for p in (prefix, route) if p and p.strip("/")]
    return "/" + "/".join(parts)


class KotlinExtractor(BaseExtractor):
    """Ktor extractor; nested route("/p") { } blocks prefix the verbs inside them."""

    @property
    def language(self) -> Language:
        return Language.KOTLIN

    @property
    def extensions(self) -> Set[str]:
        return {".kt", ".kts"}

    @property
    def frameworks(self) -> Set[str]:
        return {"ktor"}

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        if "routing" not in content and "Route." not in content and "route(" not in content:
            return []

        blocks = self._route_blocks(content)
        results = []
        for m in _KTOR_VERB.finditer(content):
            prefix = self._prefix_at(blocks, m.start())
            route = m.group(2)
            if route is None and not prefix:
                continue
            results.append(RawMatch(
                method=m.group(1).upper(),
                raw_path=join_path(prefix, route or ""),
                offset=m.start(),
                source_file=path,
                framework="ktor",
                language=self.language,
                handler="ktorHandler",
                metadata={"prefix": prefix} if prefix else {},
            ))

        # Type-safe routing: get<Articles> { } with @Resource("/articles") class Articles
        for m in _KTOR_RESOURCE.finditer(content):
            resource = re.search(_RESOURCE_CLASS.format(name=re.escape(m.group(2))), content)
            if not resource:
                continue
            prefix = self._prefix_at(blocks, m.start())
            results.append(RawMatch(
                method=m.group(1).upper(),
                raw_path=join_path(prefix, resource.group(1)),
                offset=m.start(),
                source_file=path,
                framework="ktor",
                language=self.language,
                handler=m.group(2),
                metadata={"resource": m.group(2)},
            ))
        return results

    @staticmethod
    def _route_blocks(content: str) -> List[Tuple[int, int, str]]:
        blocks: List[Tuple[int, int, str]] = []
        for m in _KTOR_ROUTE_BLOCK.finditer(content):
            prefix = m.group(1)
            enclosing = [b for b in blocks if b[0] < m.start() < b[1]]
            if enclosing:
                prefix = join_path(max(enclosing, key=lambda b: b[0])[2], prefix)
            open_pos = m.end() - 1
            blocks.append((open_pos, find_block_end(content, open_pos), prefix))
        return blocks

    @staticmethod
    def _prefix_at(blocks: List[Tuple[int, int, str]], offset: int) -> str:
        enclosing = [b for b in blocks if b[0] < offset < b[1]]
        return max(enclosing, key=lambda b: b[0])[2] if enclosing else ""
