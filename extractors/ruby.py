"""Ruby scanner: Rails, Sinatra, Grape, Hanami."""
from __future__ import annotations

import re
from typing import List, Optional, Set

from .base import BaseExtractor, Language, PatternDef, RawMatch, combine_routes

_VERB_LINE = re.compile(
    r'^[ \t]*(get|post|put|patch|delete|options|head)\s*\(?\s*["\']([^"\']*)["\']([^\n]*)',
    re.MULTILINE,
)
_RESOURCES = re.compile(r'^[ \t]*(resources|resource)\s+:(\w+)([^\n]*)', re.MULTILINE)
_NAMESPACE = re.compile(r'^\s*namespace\s+:(\w+)')
_SCOPE = re.compile(r'^\s*scope\s*\(?\s*(?:path:\s*)?["\']/?([^"\']*)["\']')
_GRAPE_RESOURCE = re.compile(r'^\s*(?:resource|resources|namespace|group)\s+:?["\']?(\w+)["\']?\s+do\b')
_BLOCK_OPEN = re.compile(r'\bdo\s*(?:\|[^|]*\|)?\s*(?:#.*)?$')
_END = re.compile(r'^\s*end\b')
_KEYWORD_OPEN = re.compile(r'^\s*(?:if|unless|def|class|module|case|begin|while|until)\b')
_TARGET = re.compile(r'(?:to:\s*|=>\s*)["\']([\w/]+#\w+)["\']')
_ACTION_LIST = re.compile(r'\b(only|except):\s*\[([^\]]*)\]')
_SYMBOL = re.compile(r':(\w+)')

# Rails REST actions: (action, method, suffix)
_COLLECTION_ACTIONS = [
    ("index", "GET", ""),
    ("create", "POST", ""),
    ("new", "GET", "/new"),
]
_MEMBER_ACTIONS = [
    ("show", "GET", "/:id"),
    ("edit", "GET", "/:id/edit"),
    ("update", "PATCH", "/:id"),
    ("update", "PUT", "/:id"),
    ("destroy", "DELETE", "/:id"),
]


def rest_actions(name: str, singular: bool = False, only: Optional[Set[str]] = None,
                 except_: Optional[Set[str]] = None):
    """Yield (action, method, path) for a resources/resource declaration."""
    member_suffix = "" if singular else "/:id"
    actions = [] if singular else list(_COLLECTION_ACTIONS[:1])
    actions += _COLLECTION_ACTIONS[1:]
    actions += [(a, m, s.replace("/:id", member_suffix)) for a, m, s in _MEMBER_ACTIONS]
    for action, method, suffix in actions:
        if only is not None and action not in only:
            continue
        if except_ and action in except_:
            continue
        yield action, method, f"/{name}{suffix}"


class RubyExtractor(BaseExtractor):
    """Ruby extractor for routing DSLs; namespace/scope blocks prefix the routes inside them."""

    @property
    def language(self) -> Language:
        return Language.RUBY

    @property
    def extensions(self) -> Set[str]:
        return {".rb"}

    @property
    def frameworks(self) -> Set[str]:
        return {"rails", "sinatra", "grape", "hanami"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== RAILS / SINATRA / GRAPE / HANAMI =====================
            PatternDef(
                regex=_VERB_LINE.pattern,
                framework="rails",
                method_group=1,
                route_group=2,
            ),
        ]

    def refine_framework(self, framework: str, content: str) -> str:
        if "Grape::API" in content:
            return "grape"
        if "Hanami" in content:
            return "hanami"
        if re.search(r'require\s+["\']sinatra|Sinatra::(?:Base|Application)', content):
            return "sinatra"
        return framework

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            if not match.raw_path.startswith("/"):
                match.raw_path = "/" + match.raw_path
            match.handler = self._handler(content, match.offset, match.method, match.raw_path)
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        prefixes = self._line_prefixes(content)
        framework = self.refine_framework("rails", content)
        results = []

        for m in _VERB_LINE.finditer(content):
            prefix = self._prefix_at(content, prefixes, m.start())
            if not prefix:
                continue
            method = m.group(1).upper()
            route = combine_routes(prefix, m.group(2))
            results.append(RawMatch(
                method=method,
                raw_path=route,
                offset=m.start(),
                source_file=path,
                framework=framework,
                language=self.language,
                handler=self._handler(content, m.start(), method, route),
                metadata={"prefix": prefix},
            ))

        for m in _RESOURCES.finditer(content):
            results.extend(self._expand_resources(content, path, m, prefixes, framework))
        return results

    # ------------------------------------------------------------------

    @staticmethod
    def _handler(content: str, offset: int, method: str, route: str) -> str:
        line_end = content.find("\n", offset)
        line = content[offset:line_end if line_end != -1 else len(content)]
        target = _TARGET.search(line)
        if target:
            return target.group(1)
        slug = re.sub(r'[^\w]+', '_', route).strip('_') or "root"
        return f"{method.lower()}_{slug}"

    @staticmethod
    def _line_prefixes(content: str) -> List[str]:
        """Prefix in effect on each line, from namespace/scope/Grape resource blocks."""
        stack: List[Optional[str]] = []
        prefixes: List[str] = []
        for line in content.split("\n"):
            prefixes.append("/".join(p for p in stack if p))
            if _END.match(line):
                if stack:
                    stack.pop()
                continue
            if not _BLOCK_OPEN.search(line):
                if _KEYWORD_OPEN.match(line):
                    stack.append(None)
                continue
            m = _NAMESPACE.match(line) or _SCOPE.match(line) or _GRAPE_RESOURCE.match(line)
            stack.append(m.group(1).strip("/") if m else None)
        return prefixes

    @staticmethod
    def _prefix_at(content: str, prefixes: List[str], offset: int) -> str:
        line = content.count("\n", 0, offset)
        return prefixes[line] if line < len(prefixes) else ""

    def _expand_resources(self, content: str, path: str, m: re.Match, prefixes: List[str],
                          framework: str) -> List[RawMatch]:
        only = except_ = None
        for kind, actions in _ACTION_LIST.findall(m.group(3)):
            names = set(_SYMBOL.findall(actions))
            if kind == "only":
                only = names
            else:
                except_ = names

        prefix = self._prefix_at(content, prefixes, m.start())
        name = m.group(2)
        results = []
        for action, method, route in rest_actions(name, m.group(1) == "resource", only, except_):
            results.append(RawMatch(
                method=method,
                raw_path=combine_routes(prefix, route),
                offset=m.start(),
                source_file=path,
                framework=framework,
                language=self.language,
                handler=f"{name}#{action}",
                metadata={"resource": name, "action": action},
            ))
        return results
