"""JavaScript/TypeScript scanner: Express, Fastify, Koa, Hono, Hapi, Restify, NestJS, tRPC, route tables."""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Set

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
    normalize_method,
)

_Q = r'["\'`]'
_NQ = r'[^"\'`]'

_IDENTIFIER = re.compile(r'^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$')

_NEST_CONTROLLER = re.compile(
    rf'@Controller\s*\(\s*(?:{_Q}({_NQ}*){_Q}|\{{[^}}]*?path\s*:\s*{_Q}({_NQ}*){_Q}[^}}]*\}})?\s*\)'
)
_NEST_ROUTE = re.compile(
    rf'@(Get|Post|Put|Patch|Delete|Options|Head|All)\s*\(\s*(?:{_Q}({_NQ}*){_Q})?\s*\)'
)
_NEST_HANDLER = re.compile(
    r'(?:\s*@\w+\s*\((?:[^()]|\([^()]*\))*\))*\s*(?:public\s+|private\s+|protected\s+)?(?:static\s+)?'
    r'(?:async\s+)?(\w+)\s*\('
)

_TRPC_PROCEDURE = re.compile(r'(\w+)\s*:\s*(?:publicProcedure|protectedProcedure|adminProcedure|procedure)\b')
_CHAIN_CALL = re.compile(r'\s*\.\s*(\w+)\s*\(')

_MOUNT = re.compile(rf'\b(?:app|server|router|api)\s*\.\s*use\s*\(\s*{_Q}({_NQ}+){_Q}\s*,\s*(\w+)')
_VAR_ROUTE = re.compile(
    rf'\b(\w+)\s*\.\s*(get|post|put|delete|patch|options|head)\s*\(\s*{_Q}({_NQ}+){_Q}'
)

_FRAMEWORK_IMPORTS = [
    ("fastify", re.compile(r'(?:require\s*\(|from\s+)\s*[\'"]fastify[\'"]')),
    ("hono", re.compile(r'(?:require\s*\(|from\s+)\s*[\'"]hono(?:/[\w-]+)?[\'"]')),
    ("koa", re.compile(r'(?:require\s*\(|from\s+)\s*[\'"](?:koa|@koa/router|koa-router)[\'"]')),
    ("restify", re.compile(r'(?:require\s*\(|from\s+)\s*[\'"]restify[\'"]')),
    ("hapi", re.compile(r'(?:require\s*\(|from\s+)\s*[\'"]@hapi/hapi[\'"]')),
]


class JavaScriptExtractor(BaseExtractor):
    """JavaScript/TypeScript extractor for code-declared routes."""

    @property
    def language(self) -> Language:
        return Language.JAVASCRIPT

    @property
    def extensions(self) -> Set[str]:
        return {".js", ".ts", ".mjs", ".mts", ".cjs"}

    @property
    def frameworks(self) -> Set[str]:
        return {"express", "fastify", "koa", "hono", "hapi", "restify", "nestjs", "trpc", "nextjs"}

    def language_for(self, path: str) -> Language:
        return Language.TYPESCRIPT if path.endswith((".ts", ".mts")) else Language.JAVASCRIPT

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== EXPRESS / KOA =====================
            PatternDef(
                regex=rf'\b(?:router|app|server|api|route|routes)\.(get|post|put|patch|delete|options|head)\s*\(\s*{_Q}({_NQ}+){_Q}',
                framework="express",
                method_group=1,
                route_group=2,
            ),

            # ===================== FASTIFY =====================
            PatternDef(
                regex=rf'\b(?:fastify|f|instance)\.(get|post|put|patch|delete|options|head)\s*\(\s*{_Q}({_NQ}+){_Q}',
                framework="fastify",
                method_group=1,
                route_group=2,
            ),
            PatternDef(
                regex=rf'\.route\s*\(\s*\{{\s*method\s*:\s*{_Q}(GET|POST|PUT|DELETE|PATCH){_Q}\s*,\s*url\s*:\s*{_Q}({_NQ}+){_Q}',
                framework="fastify",
                method_group=1,
                route_group=2,
            ),

            # ===================== HONO =====================
            PatternDef(
                regex=rf'\bhono\.(get|post|put|patch|delete|options|head)\s*\(\s*{_Q}({_NQ}+){_Q}',
                framework="hono",
                method_group=1,
                route_group=2,
            ),

            # ===================== HAPI =====================
            PatternDef(
                regex=rf'server\.route\s*\(\s*\{{[^}}]*?method\s*:\s*{_Q}(GET|POST|PUT|DELETE|PATCH){_Q}[^}}]*?path\s*:\s*{_Q}({_NQ}+){_Q}',
                framework="hapi",
                method_group=1,
                route_group=2,
            ),
            PatternDef(
                regex=rf'server\.route\s*\(\s*\{{[^}}]*?path\s*:\s*{_Q}({_NQ}+){_Q}[^}}]*?method\s*:\s*{_Q}(GET|POST|PUT|DELETE|PATCH){_Q}',
                framework="hapi",
                method_group=2,
                route_group=1,
            ),

            # ===================== RESTIFY =====================
            PatternDef(
                regex=rf'\bserver\.(del|opts)\s*\(\s*{_Q}({_NQ}+){_Q}',
                framework="restify",
                method_group=1,
                route_group=2,
            ),

            # ===================== NESTJS =====================
            PatternDef(
                regex=_NEST_ROUTE.pattern,
                framework="nestjs",
                method_group=1,
                route_group=2,
            ),

            # ===================== ROUTE TABLES =====================
            PatternDef(
                regex=rf'\{{\s*(?:method|httpMethod)\s*:\s*{_Q}(GET|POST|PUT|PATCH|DELETE){_Q}\s*,\s*(?:path|url|route)\s*:\s*{_Q}({_NQ}+){_Q}',
                framework="express",
                method_group=1,
                route_group=2,
                flags=re.MULTILINE | re.IGNORECASE,
            ),
        ]

    def refine_framework(self, framework: str, content: str) -> str:
        if framework != "express":
            return framework
        for name, pattern in _FRAMEWORK_IMPORTS:
            if pattern.search(content):
                return name
        return framework

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for match in super().scan_with_patterns(content, path):
            if match.method == "ALL":
                continue
            if match.framework == "nestjs":
                match.raw_path = combine_routes("", match.raw_path)
                match.handler = self._nest_handler(content, match.offset)
            elif match.handler is None:
                match.handler = self._call_handler(content, match.offset, match.method)
            results.append(match)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        results.extend(self._nest_controllers(content, path))
        results.extend(self._router_mounts(content, path))
        results.extend(self._trpc_procedures(content, path))
        return results

    # ------------------------------------------------------------------
    # Handler names
    # ------------------------------------------------------------------

    def _call_handler(self, content: str, offset: int, method: str) -> str:
        args = call_arguments(content, offset)
        if len(args) >= 2:
            last = args[-1]
            if _IDENTIFIER.match(last):
                return last.split(".")[-1]
            named = re.match(r'(?:async\s+)?function\s+(\w+)', last)
            if named:
                return named.group(1)
        return f"{method.lower()}Handler"

    def _nest_handler(self, content: str, offset: int) -> str:
        decorator_end = content.find(')', offset)
        if decorator_end == -1:
            return "handler"
        m = _NEST_HANDLER.match(content, decorator_end + 1)
        return m.group(1) if m else "handler"

    # ------------------------------------------------------------------
    # Heuristics
    # ------------------------------------------------------------------

    def _nest_controllers(self, content: str, path: str) -> List[RawMatch]:
        """Apply the @Controller('prefix') of the enclosing class to @Get/@Post routes."""
        if "@Controller" not in content:
            return []

        prefixes: Dict[int, str] = {}
        spans = class_spans(content)
        for span in spans:
            m = _NEST_CONTROLLER.search(span.header)
            if m:
                prefixes[span.body_start] = m.group(1) or m.group(2) or ""

        results = []
        for m in _NEST_ROUTE.finditer(content):
            method = normalize_method(m.group(1))
            if method == "ALL":
                continue
            span = innermost_span(spans, m.start())
            if span is None or span.body_start not in prefixes:
                continue
            results.append(RawMatch(
                method=method,
                raw_path=combine_routes(prefixes[span.body_start], m.group(2) or ""),
                offset=m.start(),
                source_file=path,
                framework="nestjs",
                language=self.language_for(path),
                handler=self._nest_handler(content, m.start()),
                metadata={"controller": span.name, "prefix": prefixes[span.body_start]},
            ))
        return results

    def _router_mounts(self, content: str, path: str) -> List[RawMatch]:
        """Detect Express app.use('/prefix', router) sub-router mounts."""
        mounts: Dict[str, str] = {}
        for m in _MOUNT.finditer(content):
            mounts[m.group(2)] = m.group(1)

        results = []
        for m in _VAR_ROUTE.finditer(content):
            var = m.group(1)
            if var not in mounts:
                continue
            method = m.group(2).upper()
            prefix = mounts[var]
            results.append(RawMatch(
                method=method,
                raw_path=combine_routes(prefix, m.group(3)),
                offset=m.start(),
                source_file=path,
                framework=self.refine_framework("express", content),
                language=self.language_for(path),
                handler=self._call_handler(content, m.start(), method),
                metadata={"mount_prefix": prefix},
            ))
        return results

    def _trpc_procedures(self, content: str, path: str) -> List[RawMatch]:
        """name: publicProcedure.input(...).query(...) -> GET /trpc/name"""
        if "rocedure" not in content:
            return []

        results = []
        for m in _TRPC_PROCEDURE.finditer(content):
            kind = self._procedure_kind(content, m.end())
            if kind is None:
                continue
            method = "POST" if kind == "mutation" else "GET"
            results.append(RawMatch(
                method=method,
                raw_path=f"/trpc/{m.group(1)}",
                offset=m.start(),
                source_file=path,
                framework="trpc",
                language=self.language_for(path),
                handler=m.group(1),
                metadata={"procedure": kind},
            ))
        return results

    @staticmethod
    def _procedure_kind(content: str, pos: int) -> Optional[str]:
        # Walk the builder chain, skipping each call's arguments.
        for _ in range(12):
            call = _CHAIN_CALL.match(content, pos)
            if not call:
                return None
            name = call.group(1)
            if name in ("query", "mutation", "subscription"):
                return name
            pos = find_block_end(content, call.end() - 1, "(", ")")
        return None
