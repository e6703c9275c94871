"""Java/JVM scanner: Spring MVC, JAX-RS/Quarkus, Micronaut, Servlet, Struts, Spark, Javalin, Vert.x."""
from __future__ import annotations

import re
from typing import List, Optional, Set

from .base import (
    BaseExtractor,
    ClassSpan,
    Language,
    PatternDef,
    RawMatch,
    class_spans,
    combine_routes,
    innermost_span,
    normalize_method,
)

_ARGS = r'(?:\s*\((?:[^()]|\([^()]*\))*\))?'

_SPRING_MAPPING = re.compile(rf'@(Get|Post|Put|Patch|Delete|Request)Mapping\b({_ARGS})')
_JAXRS_VERB = re.compile(r'@(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)\b(?!\s*\()')
_MICRONAUT_VERB = re.compile(
    r'@(Get|Post|Put|Patch|Delete|Head|Options)\b(?:\s*\(\s*(?:(?:value|uri)\s*=\s*)?"([^"]*)"[^)]*\))?'
)

_FIRST_STRING = re.compile(r'"([^"]*)"')
_NAMED_ROUTE = re.compile(r'\b(?:value|path)\s*=\s*\{?\s*"([^"]*)"')
_REQUEST_METHOD = re.compile(r'RequestMethod\.(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS)')
_PATH_ANNOTATION = re.compile(r'@Path\s*\(\s*(?:value\s*=\s*)?"([^"]*)"')
_CLASS_REQUEST_MAPPING = re.compile(rf'@RequestMapping\b({_ARGS})')
_MICRONAUT_CONTROLLER = re.compile(r'@Controller\s*\(\s*(?:value\s*=\s*)?"([^"]*)"')

_ANNOTATION_RUN = re.compile(rf'(?:\s*@[\w.]+{_ARGS})*')
_METHOD_NAME = re.compile(r'(?:\bfun\s+(\w+)|[\w>\]?]\s+(\w+))\s*\(')
_MEMBER_BREAK = re.compile(r'[;{}]')

_WEB_SERVLET = re.compile(r'@WebServlet\s*\(\s*(?:(?:urlPatterns|value)\s*=\s*)?\{?\s*"([^"]+)"')
_SERVLET_METHOD = re.compile(r'(?:protected|public)\s+void\s+(doGet|doPost|doPut|doDelete|doPatch)\s*\(')

# Chain-style frameworks only count when the file references them.
_CHAIN_MARKERS = {
    "spark": "spark.",
    "javalin": "javalin",
    "vertx": "vertx",
}


def _mapping_route(args: str) -> str:
    named = _NAMED_ROUTE.search(args)
    if named:
        return named.group(1)
    first = _FIRST_STRING.search(args)
    return first.group(1) if first else ""


class JavaExtractor(BaseExtractor):
    """JVM extractor; annotation routes are combined with the enclosing class prefix."""

    @property
    def language(self) -> Language:
        return Language.JAVA

    @property
    def extensions(self) -> Set[str]:
        return {".java", ".kt"}

    @property
    def frameworks(self) -> Set[str]:
        return {"spring", "quarkus", "micronaut", "vertx"}

    def language_for(self, path: str) -> Language:
        return Language.KOTLIN if path.endswith(".kt") else Language.JAVA

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== STRUTS 2 =====================
            PatternDef(
                regex=r'@Action\s*\(\s*(?:value\s*=\s*)?"([^"]+)"',
                framework="struts",
                route_group=1,
                method="POST",
            ),

            # ===================== SPARK =====================
            PatternDef(
                regex=r'\b(?:Spark\.)?(get|post|put|patch|delete)\s*\(\s*"(/[^"]*)"\s*,',
                framework="spark",
                method_group=1,
                route_group=2,
            ),

            # ===================== JAVALIN =====================
            PatternDef(
                regex=r'\bapp\.(get|post|put|patch|delete)\s*\(\s*"([^"]+)"',
                framework="javalin",
                method_group=1,
                route_group=2,
            ),

            # ===================== VERT.X =====================
            PatternDef(
                regex=r'\brouter\.(get|post|put|patch|delete|route)\s*\(\s*"([^"]+)"\s*\)',
                framework="vertx",
                method_group=1,
                route_group=2,
            ),
        ]

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = []
        lowered = content.lower()
        for match in super().scan_with_patterns(content, path):
            marker = _CHAIN_MARKERS.get(match.framework)
            if marker and marker not in lowered:
                continue
            if match.method == "ROUTE":
                match.method = "GET"
            if match.framework == "struts":
                match.handler = self._method_name(content, content.find(')', match.offset) + 1) or "execute"
            else:
                match.handler = f"{match.method.lower()}Handler"
            results.append(match)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        spans = class_spans(content)
        results = []
        results.extend(self._spring_routes(content, path, spans))
        results.extend(self._jaxrs_routes(content, path, spans))
        results.extend(self._micronaut_routes(content, path, spans))
        results.extend(self._servlet_routes(content, path))
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _in_class_header(spans: List[ClassSpan], offset: int) -> bool:
        return any(span.header_start <= offset < span.decl_start for span in spans)

    @staticmethod
    def _method_name(content: str, annotation_end: int) -> Optional[str]:
        run = _ANNOTATION_RUN.match(content, annotation_end)
        start = run.end() if run else annotation_end
        m = _METHOD_NAME.search(content, start, start + 400)
        if not m:
            return None
        return m.group(1) or m.group(2)

    @staticmethod
    def _annotation_run(content: str, offset: int, end: int) -> str:
        """Text of the annotation run around offset, up to the member name."""
        start = offset
        while start > 0 and not _MEMBER_BREAK.match(content, start - 1):
            start -= 1
        return content[start:end]

    def _make(self, content: str, path: str, offset: int, end: int, method: str, route: str,
              framework: str, span: Optional[ClassSpan], prefix: str) -> RawMatch:
        metadata = {"prefix": prefix}
        if span is not None:
            metadata["class"] = span.name
        return RawMatch(
            method=normalize_method(method),
            raw_path=combine_routes(prefix, route),
            offset=offset,
            source_file=path,
            framework=framework,
            language=self.language_for(path),
            handler=self._method_name(content, end) or "handler",
            metadata=metadata,
        )

    # ------------------------------------------------------------------
    # Annotation families
    # ------------------------------------------------------------------

    def _spring_routes(self, content: str, path: str, spans: List[ClassSpan]) -> List[RawMatch]:
        if "Mapping" not in content:
            return []
        results = []
        for m in _SPRING_MAPPING.finditer(content):
            if self._in_class_header(spans, m.start()):
                continue
            args = m.group(2) or ""
            method = m.group(1)
            if method == "Request":
                verb = _REQUEST_METHOD.search(args)
                method = verb.group(1) if verb else "GET"

            span = innermost_span(spans, m.start())
            prefix = ""
            if span is not None:
                class_mapping = _CLASS_REQUEST_MAPPING.search(span.header)
                if class_mapping:
                    prefix = _mapping_route(class_mapping.group(1) or "")

            results.append(self._make(
                content, path, m.start(), m.end(), method, _mapping_route(args),
                "spring", span, prefix,
            ))
        return results

    def _jaxrs_routes(self, content: str, path: str, spans: List[ClassSpan]) -> List[RawMatch]:
        if "@Path" not in content:
            return []
        framework = "quarkus" if "io.quarkus" in content else "jaxrs"
        results = []
        for m in _JAXRS_VERB.finditer(content):
            name_match = _METHOD_NAME.search(content, m.end(), m.end() + 600)
            run_end = name_match.start() if name_match else m.end()
            run = self._annotation_run(content, m.start(), run_end)
            route_match = _PATH_ANNOTATION.search(run)

            span = innermost_span(spans, m.start())
            prefix = ""
            if span is not None:
                class_path = _PATH_ANNOTATION.search(span.header)
                if class_path:
                    prefix = class_path.group(1)

            results.append(self._make(
                content, path, m.start(), m.end(), m.group(1),
                route_match.group(1) if route_match else "", framework, span, prefix,
            ))
        return results

    def _micronaut_routes(self, content: str, path: str, spans: List[ClassSpan]) -> List[RawMatch]:
        if "@Controller" not in content or "micronaut" not in content:
            return []
        results = []
        for m in _MICRONAUT_VERB.finditer(content):
            span = innermost_span(spans, m.start())
            prefix = ""
            if span is not None:
                controller = _MICRONAUT_CONTROLLER.search(span.header)
                if controller:
                    prefix = controller.group(1)
            results.append(self._make(
                content, path, m.start(), m.end(), m.group(1), m.group(2) or "",
                "micronaut", span, prefix,
            ))
        return results

    def _servlet_routes(self, content: str, path: str) -> List[RawMatch]:
        servlet = _WEB_SERVLET.search(content)
        if not servlet:
            return []
        results = []
        for m in _SERVLET_METHOD.finditer(content):
            results.append(RawMatch(
                method=m.group(1)[2:].upper(),
                raw_path=servlet.group(1),
                offset=m.start(),
                source_file=path,
                framework="servlet",
                language=self.language_for(path),
                handler=m.group(1),
            ))
        return results
