"""PHP scanner: Laravel, Symfony, Slim, Yii."""
from __future__ import annotations

import re
from typing import List, Set, Tuple

from .base import (
    BaseExtractor,
    Language,
    PatternDef,
    RawMatch,
    call_arguments,
    class_spans,
    combine_routes,
    find_block_end,
    innermost_span,
)

_LARAVEL_ROUTE = re.compile(
    r'Route::(get|post|put|patch|delete|options)\s*\(\s*["\']([^"\']*)["\']'
)
_LARAVEL_MATCH = re.compile(r'Route::match\s*\(\s*\[([^\]]*)\]\s*,\s*["\']([^"\']*)["\']')
_LARAVEL_RESOURCE = re.compile(r'Route::(apiResource|resource)\s*\(\s*["\']([^"\']+)["\']')
_LARAVEL_GROUP = re.compile(r'Route::((?:\w+\s*\((?:[^()]|\([^()]*\))*\)\s*->\s*)*)group\s*\(')
_CHAIN_PREFIX = re.compile(r'prefix\s*\(\s*["\']([^"\']*)["\']')
_ARRAY_PREFIX = re.compile(r'["\']prefix["\']\s*=>\s*["\']([^"\']*)["\']')

_SLIM_GROUP = re.compile(r'\$(\w+)->group\s*\(\s*["\']([^"\']*)["\']\s*,\s*function\s*\(\s*(?:[\w\\]+\s+)?\$(\w+)')
_SLIM_ROUTE = re.compile(r'\$(\w+)->(get|post|put|patch|delete|options)\s*\(\s*["\']([^"\']*)["\']')

_SYMFONY_ROUTE = re.compile(
    r'(?:#\[Route|@Route)\s*\(\s*(?:path\s*[:=]\s*)?["\']([^"\']*)["\']((?:[^)\]\[]|\[[^\]]*\])*)'
)
_SYMFONY_METHODS = re.compile(r'methods\s*[:=]\s*[\[{]([^\]}]*)[\]}]')
_QUOTED_WORD = re.compile(r'["\'](\w+)["\']')
_PHP_FUNCTION = re.compile(r'function\s+(\w+)\s*\(')
_PHP_CLASS = re.compile(r'\bclass\s+(\w+)[^{;]*\{')

# Laravel resource routes: (action, method, suffix)
_API_RESOURCE = [
    ("index", "GET", ""),
    ("store", "POST", ""),
    ("show", "GET", "/{id}"),
    ("update", "PUT", "/{id}"),
    ("update", "PATCH", "/{id}"),
    ("destroy", "DELETE", "/{id}"),
]
_WEB_RESOURCE_EXTRA = [
    ("create", "GET", "/create"),
    ("edit", "GET", "/{id}/edit"),
]


class PhpExtractor(BaseExtractor):
    """PHP extractor for facade, attribute and app-object routing."""

    @property
    def language(self) -> Language:
        return Language.PHP

    @property
    def extensions(self) -> Set[str]:
        return {".php"}

    @property
    def frameworks(self) -> Set[str]:
        return {"laravel", "symfony", "slim", "yii"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== LARAVEL =====================
            PatternDef(
                regex=_LARAVEL_ROUTE.pattern,
                framework="laravel",
                method_group=1,
                route_group=2,
            ),

            # ===================== SLIM =====================
            PatternDef(
                regex=_SLIM_ROUTE.pattern,
                framework="slim",
                method_group=2,
                route_group=3,
            ),

            # ===================== YII URL RULES =====================
            PatternDef(
                regex=r'["\'](GET|POST|PUT|PATCH|DELETE)\s+([\w/<>:.\\-]+)["\']\s*=>',
                framework="yii",
                method_group=1,
                route_group=2,
            ),
        ]

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            if not match.raw_path.startswith("/"):
                match.raw_path = "/" + match.raw_path
            match.handler = self._handler(content, match.offset, match.framework)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        if "Route::" in content:
            blocks = self._laravel_groups(content)
            results.extend(self._laravel_prefixed(content, path, blocks))
            results.extend(self._laravel_match(content, path, blocks))
            results.extend(self._laravel_resources(content, path, blocks))
        if "->group(" in content and "$app" in content:
            results.extend(self._slim_groups(content, path))
        if "Route(" in content:
            results.extend(self._symfony_routes(content, path))
        return results

    # ------------------------------------------------------------------

    @staticmethod
    def _handler(content: str, offset: int, framework: str) -> str:
        if framework == "yii":
            target = re.match(r'["\'][^"\']*["\']\s*=>\s*["\']([^"\']+)["\']', content[offset:])
            return target.group(1) if target else "action"
        args = call_arguments(content, offset)
        if len(args) >= 2:
            action = re.search(r'\[\s*([\w\\]+)::class\s*,\s*["\'](\w+)["\']\s*\]', args[1])
            if action:
                controller = action.group(1).split("\\")[-1]
                return f"{controller}@{action.group(2)}"
            at = re.match(r'["\']([\w\\]+@\w+)["\']', args[1])
            if at:
                return at.group(1).split("\\")[-1]
        return "closure"

    @staticmethod
    def _prefix_for(blocks: List[Tuple[int, int, str]], offset: int) -> str:
        enclosing = [b for b in blocks if b[0] < offset < b[1]]
        if not enclosing:
            return ""
        return max(enclosing, key=lambda b: b[0])[2]

    @staticmethod
    def _laravel_groups(content: str) -> List[Tuple[int, int, str]]:
        """Route::prefix('p')->group(function () {...}) and Route::group(['prefix' => 'p'], ...)."""
        blocks: List[Tuple[int, int, str]] = []
        for m in _LARAVEL_GROUP.finditer(content):
            prefix_m = _CHAIN_PREFIX.search(m.group(1))
            open_paren = m.end() - 1
            if not prefix_m:
                args = call_arguments(content, open_paren)
                prefix_m = _ARRAY_PREFIX.search(args[0]) if args else None
            body_open = content.find("{", content.find("function", open_paren))
            if body_open == -1:
                continue
            prefix = prefix_m.group(1).strip("/") if prefix_m else ""
            enclosing = [b for b in blocks if b[0] < m.start() < b[1]]
            if enclosing:
                outer = max(enclosing, key=lambda b: b[0])[2]
                prefix = "/".join(p for p in (outer, prefix) if p)
            blocks.append((body_open, find_block_end(content, body_open), prefix))
        return blocks

    def _laravel_prefixed(self, content: str, path: str, blocks) -> List[RawMatch]:
        results = []
        for m in _LARAVEL_ROUTE.finditer(content):
            prefix = self._prefix_for(blocks, m.start())
            if not prefix:
                continue
            results.append(RawMatch(
                method=m.group(1).upper(),
                raw_path=combine_routes(prefix, m.group(2)),
                offset=m.start(),
                source_file=path,
                framework="laravel",
                language=self.language,
                handler=self._handler(content, m.start(), "laravel"),
                metadata={"prefix": prefix},
            ))
        return results

    def _laravel_match(self, content: str, path: str, blocks) -> List[RawMatch]:
        results = []
        for m in _LARAVEL_MATCH.finditer(content):
            route = combine_routes(self._prefix_for(blocks, m.start()), m.group(2))
            for method in dict.fromkeys(w.upper() for w in _QUOTED_WORD.findall(m.group(1))):
                results.append(RawMatch(
                    method=method,
                    raw_path=route,
                    offset=m.start(),
                    source_file=path,
                    framework="laravel",
                    language=self.language,
                    handler=self._handler(content, m.start(), "laravel"),
                ))
        return results

    def _laravel_resources(self, content: str, path: str, blocks) -> List[RawMatch]:
        results = []
        for m in _LARAVEL_RESOURCE.finditer(content):
            name = m.group(2).strip("/")
            base = combine_routes(self._prefix_for(blocks, m.start()), name)
            actions = list(_API_RESOURCE)
            if m.group(1) == "resource":
                actions += _WEB_RESOURCE_EXTRA
            controller = re.search(r'(\w+)::class', content[m.end():m.end() + 200])
            controller_name = controller.group(1) if controller else f"{name.title()}Controller"
            for action, method, suffix in actions:
                results.append(RawMatch(
                    method=method,
                    raw_path=base + suffix,
                    offset=m.start(),
                    source_file=path,
                    framework="laravel",
                    language=self.language,
                    handler=f"{controller_name}@{action}",
                    metadata={"resource": name, "action": action},
                ))
        return results

    def _slim_groups(self, content: str, path: str) -> List[RawMatch]:
        """$app->group('/p', function (RouteCollectorProxy $group) { $group->get(...) })."""
        blocks = []
        for m in _SLIM_GROUP.finditer(content):
            body_open = content.find("{", m.end())
            if body_open == -1:
                continue
            prefix = m.group(2).strip("/")
            enclosing = [b for b in blocks if b[0] < m.start() < b[1]]
            if enclosing:
                outer = max(enclosing, key=lambda b: b[0])[2]
                prefix = "/".join(p for p in (outer, prefix) if p)
            blocks.append((body_open, find_block_end(content, body_open), prefix, m.group(3)))

        results = []
        for m in _SLIM_ROUTE.finditer(content):
            enclosing = [b for b in blocks if b[0] < m.start() < b[1] and b[3] == m.group(1)]
            if not enclosing:
                continue
            prefix = max(enclosing, key=lambda b: b[0])[2]
            results.append(RawMatch(
                method=m.group(2).upper(),
                raw_path=combine_routes(prefix, m.group(3)),
                offset=m.start(),
                source_file=path,
                framework="slim",
                language=self.language,
                handler="closure",
                metadata={"prefix": prefix},
            ))
        return results

    def _symfony_routes(self, content: str, path: str) -> List[RawMatch]:
        spans = class_spans(content, decl=_PHP_CLASS)
        results = []
        for m in _SYMFONY_ROUTE.finditer(content):
            if any(span.header_start <= m.start() < span.decl_start for span in spans):
                continue
            span = innermost_span(spans, m.start())
            prefix = ""
            if span is not None:
                class_route = _SYMFONY_ROUTE.search(span.header)
                if class_route:
                    prefix = class_route.group(1)

            methods = ["GET"]
            listed = _SYMFONY_METHODS.search(m.group(2))
            if listed:
                methods = [w.upper() for w in _QUOTED_WORD.findall(listed.group(1))] or methods

            function = _PHP_FUNCTION.search(content, m.end())
            handler = function.group(1) if function else "action"
            for method in dict.fromkeys(methods):
                results.append(RawMatch(
                    method=method,
                    raw_path=combine_routes(prefix, m.group(1)),
                    offset=m.start(),
                    source_file=path,
                    framework="symfony",
                    language=self.language,
                    handler=handler,
                    metadata={"prefix": prefix} if prefix else {},
                ))
        return results
