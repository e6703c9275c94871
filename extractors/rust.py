"""Rust scanner: Actix-web, Rocket, Axum, Warp."""
from __future__ import annotations

import re
from typing import List, Set

from .base import BaseExtractor, Language, PatternDef, RawMatch, call_arguments

_VERBS = "get|post|put|patch|delete|head|options"

_ATTRIBUTE_ROUTE = re.compile(rf'#\[({_VERBS})\s*\(\s*"([^"]*)"')
_FN_NAME = re.compile(r'fn\s+(\w+)')
_ROUTE_CALL = re.compile(r'\.route\s*\(\s*"([^"]*)"\s*,')
_METHOD_ROUTER = re.compile(rf'(?:^|[.:\s(])({_VERBS})\s*\(\s*([\w:]*)')
_ACTIX_TO = re.compile(r'\.to\s*\(\s*([\w:]+)\s*\)')
_ACTIX_RESOURCE = re.compile(r'web::resource\s*\(\s*"([^"]*)"\s*\)')
_ACTIX_RESOURCE_ROUTE = re.compile(rf'\.route\s*\(\s*web::({_VERBS})\s*\(\s*\)(?:\s*\.to\s*\(\s*([\w:]+)\s*\))?')
_WARP_PATH = re.compile(r'warp::path!\s*\(([^)]*)\)')
_WARP_METHOD = re.compile(rf'warp::({_VERBS})\s*\(\s*\)')


def warp_route(macro_args: str) -> str:
    """warp::path!("users" / u32 / "posts") -> /users/{u32}/posts"""
    segments = []
    for part in macro_args.split("/"):
        part = part.strip()
        if not part or part == "..":
            continue
        if part.startswith('"') and part.endswith('"'):
            segments.append(part[1:-1])
        else:
            segments.append("{" + part.split("::")[-1] + "}")
    return "/" + "/".join(segments)


class RustExtractor(BaseExtractor):
    """Rust extractor for route attributes and router builder chains."""

    @property
    def language(self) -> Language:
        return Language.RUST

    @property
    def extensions(self) -> Set[str]:
        return {".rs"}

    @property
    def frameworks(self) -> Set[str]:
        return {"actix", "rocket", "axum", "warp"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== ACTIX / ROCKET ATTRIBUTES =====================
            PatternDef(
                regex=_ATTRIBUTE_ROUTE.pattern,
                framework="actix",
                method_group=1,
                route_group=2,
            ),
        ]

    def refine_framework(self, framework: str, content: str) -> str:
        if framework == "actix" and re.search(r'\brocket\b', content):
            return "rocket"
        return framework

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            fn = _FN_NAME.search(content, match.offset)
            match.handler = fn.group(1) if fn else "handler"
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        if ".route(" in content:
            results.extend(self._route_calls(content, path))
        if "web::resource" in content:
            results.extend(self._actix_resources(content, path))
        if "warp::" in content:
            results.extend(self._warp_filters(content, path))
        return results

    # ------------------------------------------------------------------

    def _route_calls(self, content: str, path: str) -> List[RawMatch]:
        """Axum .route("/x", get(h).post(h2)) and Actix .route("/x", web::get().to(h))."""
        results = []
        for m in _ROUTE_CALL.finditer(content):
            args = call_arguments(content, m.start())
            if len(args) < 2:
                continue
            router = args[1]
            actix = "web::" in router
            framework = "actix" if actix else "axum"
            seen = set()
            for verb in _METHOD_ROUTER.finditer(router):
                method = verb.group(1).upper()
                if method in seen:
                    continue
                seen.add(method)
                handler = verb.group(2)
                if actix:
                    to = _ACTIX_TO.search(router, verb.end())
                    handler = to.group(1) if to else ""
                results.append(RawMatch(
                    method=method,
                    raw_path=m.group(1),
                    offset=m.start(),
                    source_file=path,
                    framework=framework,
                    language=self.language,
                    handler=(handler or "handler").split("::")[-1],
                ))
        return results

    def _actix_resources(self, content: str, path: str) -> List[RawMatch]:
        """web::resource("/x").route(web::get().to(h)).route(web::post().to(h2))"""
        results = []
        for m in _ACTIX_RESOURCE.finditer(content):
            end = content.find(";", m.end())
            tail = content[m.end():end if end != -1 else m.end() + 600]
            next_resource = tail.find("web::resource")
            if next_resource != -1:
                tail = tail[:next_resource]
            for route in _ACTIX_RESOURCE_ROUTE.finditer(tail):
                results.append(RawMatch(
                    method=route.group(1).upper(),
                    raw_path=m.group(1),
                    offset=m.start(),
                    source_file=path,
                    framework="actix",
                    language=self.language,
                    handler=(route.group(2) or "handler").split("::")[-1],
                ))
        return results

    def _warp_filters(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for m in _WARP_PATH.finditer(content):
            window = content[max(0, m.start() - 200):m.end() + 200]
            verb = _WARP_METHOD.search(window)
            assign = re.search(r'let\s+(\w+)\s*=\s*[^;]*$', content[max(0, m.start() - 200):m.start()])
            results.append(RawMatch(
                method=verb.group(1).upper() if verb else "GET",
                raw_path=warp_route(m.group(1)),
                offset=m.start(),
                source_file=path,
                framework="warp",
                language=self.language,
                handler=assign.group(1) if assign else "filter",
            ))
        return results
