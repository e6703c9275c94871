"""Python scanner: FastAPI, Flask, Sanic, Django/DRF, Tornado, aiohttp."""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Set

from .base import BaseExtractor, HTTP_METHODS, Language, PatternDef, RawMatch, combine_routes

_DEF = re.compile(r'(?:async\s+)?def\s+(\w+)')

_DECORATOR_ROUTE = re.compile(
    r'@(\w+)\.(get|post|put|patch|delete|options|head)\s*\(\s*[rf]?["\']([^"\']*)["\']'
)
_ROUTE_WITH_METHODS = re.compile(
    r'@(\w+)\.(route|api_route)\s*\(\s*[rf]?["\']([^"\']*)["\']([^)]*)\)'
)
_METHODS_ARG = re.compile(r'methods\s*=\s*[\[\(\{]([^\]\)\}]*)[\]\)\}]')
_QUOTED_WORD = re.compile(r'["\'](\w+)["\']')

_ROUTER_PREFIX = re.compile(
    r'(\w+)\s*=\s*(?:APIRouter|Blueprint|Sanic\.?Blueprint|web\.RouteTableDef)\s*\(([^)]*)\)'
)
_PREFIX_ARG = re.compile(r'(?:url_)?prefix\s*=\s*[rf]?["\']([^"\']*)["\']')

_DJANGO_URL = re.compile(r'\b(re_path|path|url)\s*\(\s*r?["\']([^"\']*)["\']\s*,\s*([\w.]+)(\s*\.as_view)?')
_DRF_VIEW = re.compile(r'@api_view\s*\(\s*\[([^\]]*)\]\s*\)')
_TORNADO_ROUTE = re.compile(r'\(\s*r?["\'](/[^"\']*)["\']\s*,\s*(\w+Handler)\b')


class PythonExtractor(BaseExtractor):
    """Python extractor for decorator, URLconf and route-table idioms."""

    @property
    def language(self) -> Language:
        return Language.PYTHON

    @property
    def extensions(self) -> Set[str]:
        return {".py"}

    @property
    def frameworks(self) -> Set[str]:
        return {"fastapi", "flask", "django", "tornado", "aiohttp", "sanic"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== FASTAPI / SANIC / FLASK 2 =====================
            PatternDef(
                regex=_DECORATOR_ROUTE.pattern,
                framework="fastapi",
                method_group=2,
                route_group=3,
            ),

            # ===================== AIOHTTP =====================
            PatternDef(
                regex=r'\bweb\.(get|post|put|patch|delete|head|options)\s*\(\s*["\']([^"\']+)["\']\s*,\s*(\w+)',
                framework="aiohttp",
                method_group=1,
                route_group=2,
                handler_group=3,
            ),
            PatternDef(
                regex=r'\.add_(get|post|put|patch|delete|head|options)\s*\(\s*["\']([^"\']+)["\']\s*,\s*(\w+)',
                framework="aiohttp",
                method_group=1,
                route_group=2,
                handler_group=3,
            ),
        ]

    def refine_framework(self, framework: str, content: str) -> str:
        if framework != "fastapi":
            return framework
        if re.search(r'^\s*(?:from|import)\s+sanic\b', content, re.MULTILINE):
            return "sanic"
        if re.search(r'^\s*(?:from|import)\s+flask\b', content, re.MULTILINE):
            return "flask"
        if re.search(r'^\s*(?:from|import)\s+aiohttp\b', content, re.MULTILINE):
            return "aiohttp"
        return framework

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            if match.handler is None:
                match.handler = self._handler_after(content, match.offset)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        prefixes = self._router_prefixes(content)

        # Decorators on routers declared with a prefix
        for m in _DECORATOR_ROUTE.finditer(content):
            var = m.group(1)
            if var not in prefixes:
                continue
            results.append(self._match(
                content, path, m.start(), m.group(2), combine_routes(prefixes[var], m.group(3)),
                self.refine_framework("fastapi", content), {"router": var, "prefix": prefixes[var]},
            ))

        results.extend(self._multi_method_routes(content, path, prefixes))

        if "urlpatterns" in content:
            results.extend(self._django_urls(content, path))
        results.extend(self._drf_views(content, path))
        if "tornado" in content:
            results.extend(self._tornado_routes(content, path))
        return results

    # ------------------------------------------------------------------

    def _match(self, content: str, path: str, offset: int, method: str, route: str,
               framework: str, metadata: Optional[Dict] = None) -> RawMatch:
        return RawMatch(
            method=method.upper(),
            raw_path=route,
            offset=offset,
            source_file=path,
            framework=framework,
            language=self.language,
            handler=self._handler_after(content, offset),
            metadata=metadata or {},
        )

    @staticmethod
    def _handler_after(content: str, offset: int) -> str:
        m = _DEF.search(content, offset)
        return m.group(1) if m else "unknown"

    @staticmethod
    def _router_prefixes(content: str) -> Dict[str, str]:
        prefixes: Dict[str, str] = {}
        for m in _ROUTER_PREFIX.finditer(content):
            arg = _PREFIX_ARG.search(m.group(2))
            if arg and arg.group(1):
                prefixes[m.group(1)] = arg.group(1)
        return prefixes

    def _multi_method_routes(self, content: str, path: str, prefixes: Dict[str, str]) -> List[RawMatch]:
        """@app.route("/p", methods=["GET", "POST"]) and FastAPI api_route."""
        results = []
        decorator_framework = self.refine_framework("fastapi", content)

        for m in _ROUTE_WITH_METHODS.finditer(content):
            if m.group(2) == "api_route":
                framework = "fastapi"
            else:
                framework = decorator_framework if decorator_framework == "sanic" else "flask"

            methods_arg = _METHODS_ARG.search(m.group(4))
            methods = ["GET"]
            if methods_arg:
                methods = [w.upper() for w in _QUOTED_WORD.findall(methods_arg.group(1))] or ["GET"]

            route = m.group(3)
            if m.group(1) in prefixes:
                route = combine_routes(prefixes[m.group(1)], route)

            seen = set()
            for method in methods:
                if method not in HTTP_METHODS or method in seen:
                    continue
                seen.add(method)
                results.append(self._match(content, path, m.start(), method, route, framework))
        return results

    def _django_urls(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for m in _DJANGO_URL.finditer(content):
            target = m.group(3)
            if target in ("include", "admin.site.urls") or target.startswith("include"):
                continue
            handler = target.split(".")[-1]
            results.append(RawMatch(
                method="GET",
                raw_path="/" + m.group(2).lstrip("^/"),
                offset=m.start(),
                source_file=path,
                framework="django",
                language=self.language,
                handler=handler,
                metadata={"regex": m.group(1) != "path", "class_view": bool(m.group(4))},
            ))
        return results

    def _drf_views(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for m in _DRF_VIEW.finditer(content):
            methods = [w.upper() for w in _QUOTED_WORD.findall(m.group(1))] or ["GET"]
            handler = self._handler_after(content, m.end())
            for method in dict.fromkeys(methods):
                if method not in ("GET", "POST", "PUT", "PATCH", "DELETE"):
                    continue
                results.append(RawMatch(
                    method=method,
                    raw_path=f"/{handler}",
                    offset=m.start(),
                    source_file=path,
                    framework="django",
                    language=self.language,
                    handler=handler,
                    # placeholder until the URLconf entry for handler is known
                    metadata={"drf": True, "inferred_path": True},
                ))
        return results

    def _tornado_routes(self, content: str, path: str) -> List[RawMatch]:
        """(r"/path", SomeHandler) tables; methods come from the handler class body."""
        results = []
        for m in _TORNADO_ROUTE.finditer(content):
            handler_cls = m.group(2)
            methods = ["GET"]
            cls = re.search(rf'class\s+{handler_cls}\s*\([^)]*\)\s*:(.*?)(?=^class\s|\Z)', content, re.MULTILINE | re.DOTALL)
            if cls:
                found = re.findall(r'def\s+(get|post|put|patch|delete)\s*\(\s*self', cls.group(1))
                methods = [f.upper() for f in dict.fromkeys(found)] or methods
            for method in methods:
                results.append(RawMatch(
                    method=method,
                    raw_path=m.group(1),
                    offset=m.start(),
                    source_file=path,
                    framework="tornado",
                    language=self.language,
                    handler=handler_cls,
                ))
        return results


def route_api_views(matches: List[RawMatch]) -> List[RawMatch]:
    """
    Give @api_view matches the path their URLconf entry routes to them.

    The URLconf's own GET-only match for that handler is dropped since the
    view match carries the declared methods. Views with no URLconf entry
    keep their inferred path and the inferred_path flag.
    """
    routes: Dict[str, str] = {}
    for m in matches:
        if m.framework == "django" and m.metadata.get("class_view") is False and m.handler:
            routes.setdefault(m.handler, m.raw_path)

    routed = set()
    for m in matches:
        if m.metadata.get("inferred_path") and m.handler in routes:
            m.raw_path = routes[m.handler]
            m.metadata.pop("inferred_path")
            routed.add(m.handler)

    return [
        m for m in matches
        if not (m.metadata.get("class_view") is False and m.handler in routed)
    ]
