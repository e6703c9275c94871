"""Next.js scanner: App Router route handlers and Pages Router API routes (file-system routing)."""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import List, Optional, Set, Tuple

from .base import BaseExtractor, HTTP_METHODS, Language, RawMatch

# Method exports, in declaration order of HTTP_METHODS
_EXPORT_FUNC = r'export\s+(?:async\s+)?function\s+{method}\s*\('
_EXPORT_CONST = r'export\s+const\s+{method}\s*='
_EXPORT_LIST = re.compile(r'export\s*\{([^}]*)\}')
_ALIAS = re.compile(r'(\w+)\s+as\s+(GET|POST|PUT|PATCH|DELETE|OPTIONS|HEAD)\b')

_DEFAULT_EXPORT = re.compile(
    r'export\s+default\s+(?:async\s+)?(?:function\s*(\w+)?\s*\(|'
    r'(?:const\s+\w+\s*=\s*)?\(?\s*(?:\w+|\{[^}]+\})\s*(?:,\s*(?:\w+|\{[^}]+\}))?\s*\)?\s*=>)'
)
_REQ_METHOD = re.compile(r'req\.method\s*===?\s*[\'"`](GET|POST|PUT|PATCH|DELETE)[\'"`]', re.IGNORECASE)

_SOURCE_SUFFIXES = (".ts", ".js", ".tsx", ".jsx", ".mjs")


def segment_to_route(segment: str) -> Optional[str]:
    """
    Map one file-system segment to a route segment.

    [id] -> :id, [...slug] -> :slug*, [[...slug]] -> :slug?, (group) -> None
    """
    if segment.startswith("(") and segment.endswith(")"):
        return None
    if segment.startswith("[[...") and segment.endswith("]]"):
        return f":{segment[5:-2]}?"
    if segment.startswith("[...") and segment.endswith("]"):
        return f":{segment[4:-1]}*"
    if segment.startswith("[") and segment.endswith("]"):
        return f":{segment[1:-1]}"
    return segment


def _locate(parts: Tuple[str, ...], router_dir: str) -> Optional[int]:
    """Index of the 'api' part directly under app/ or pages/, or None."""
    for i in range(len(parts) - 1):
        if parts[i] == router_dir and parts[i + 1] == "api":
            return i + 1
    return None


def _route_from(segments) -> str:
    route = ["/api"]
    for segment in segments:
        part = segment_to_route(segment)
        if part:
            route.append(part)
    return "/".join(route) if len(route) > 1 else "/api"


class NextJsExtractor(BaseExtractor):
    """Next.js extractor; routes come from the file location, methods from exports."""

    @property
    def language(self) -> Language:
        return Language.TYPESCRIPT

    @property
    def extensions(self) -> Set[str]:
        return set(_SOURCE_SUFFIXES)

    @property
    def frameworks(self) -> Set[str]:
        return {"nextjs"}

    def language_for(self, path: str) -> Language:
        return Language.TYPESCRIPT if path.endswith((".ts", ".tsx")) else Language.JAVASCRIPT

    def accepts(self, path: str) -> bool:
        if not super().accepts(path):
            return False
        return self.route_for(path) is not None

    def route_for(self, path: str) -> Optional[Tuple[str, str]]:
        """Return (route, router kind) for a file, or None if it is not an API route."""
        pure = PurePosixPath(path)
        parts = pure.parts

        idx = _locate(parts, "app")
        if idx is not None:
            if pure.stem != "route" or pure.suffix not in (".ts", ".js"):
                return None
            return _route_from(parts[idx + 1:-1]), "app"

        idx = _locate(parts, "pages")
        if idx is not None:
            segments = list(parts[idx + 1:-1])
            if pure.stem != "index":
                segments.append(pure.stem)
            return _route_from(segments), "pages"

        return None

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        located = self.route_for(path)
        if located is None:
            return []
        route, kind = located

        results = self._named_exports(content, path, route, kind)
        if kind == "pages" and not results:
            results = self._default_export(content, path, route)
        return results

    def _named_exports(self, content: str, path: str, route: str, kind: str) -> List[RawMatch]:
        results = []
        language = self.language_for(path)
        seen = set()

        for method in HTTP_METHODS:
            match = (re.search(_EXPORT_FUNC.format(method=method), content)
                     or re.search(_EXPORT_CONST.format(method=method), content))
            if match:
                seen.add(method)
                results.append(RawMatch(
                    method=method, raw_path=route, offset=match.start(), source_file=path,
                    framework="nextjs", language=language, handler=method,
                    metadata={"router": kind},
                ))

        # export { handler as GET, handler as POST }
        for block in _EXPORT_LIST.finditer(content):
            for alias in _ALIAS.finditer(block.group(1)):
                method = alias.group(2)
                if method in seen:
                    continue
                seen.add(method)
                handler = alias.group(1)
                definition = re.search(
                    rf'(?:function\s+{re.escape(handler)}\s*\(|(?:const|let)\s+{re.escape(handler)}\s*=)', content)
                offset = definition.start() if definition else block.start()
                results.append(RawMatch(
                    method=method, raw_path=route, offset=offset, source_file=path,
                    framework="nextjs", language=language, handler=handler,
                    metadata={"router": kind, "alias": True},
                ))

        return results

    def _default_export(self, content: str, path: str, route: str) -> List[RawMatch]:
        match = _DEFAULT_EXPORT.search(content)
        if not match:
            return []

        methods: List[str] = []
        for m in _REQ_METHOD.finditer(content):
            method = m.group(1).upper()
            if method not in methods:
                methods.append(method)
        if not methods:
            methods = ["GET", "POST"]

        return [
            RawMatch(
                method=method, raw_path=route, offset=match.start(), source_file=path,
                framework="nextjs", language=self.language_for(path),
                handler=match.group(1) or "handler",
                metadata={"router": "pages", "default_export": True},
            )
            for method in methods
        ]
