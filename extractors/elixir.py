"""Elixir scanner: Phoenix router."""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import List, Optional, Set

from .base import BaseExtractor, Language, PatternDef, RawMatch

_ROUTE = re.compile(
    r'^[ \t]*(get|post|put|patch|delete|options|head)\s+"([^"]*)"\s*,\s*([\w.]+)\s*,\s*:(\w+)',
    re.MULTILINE,
)
_RESOURCES = re.compile(r'^[ \t]*resources\s+"([^"]*)"\s*,\s*([\w.]+)([^\n]*)', re.MULTILINE)
_SCOPE = re.compile(r'^\s*scope\s+"([^"]*)"')
_BLOCK_OPEN = re.compile(r'\bdo\s*$')
_END = re.compile(r'^\s*end\b')
_ACTION_LIST = re.compile(r'\b(only|except):\s*\[([^\]]*)\]')
_ATOM = re.compile(r':(\w+)')

# Phoenix resources actions: (action, method, suffix)
_RESOURCE_ACTIONS = [
    ("index", "GET", ""),
    ("new", "GET", "/new"),
    ("show", "GET", "/:id"),
    ("edit", "GET", "/:id/edit"),
    ("create", "POST", ""),
    ("update", "PATCH", "/:id"),
    ("update", "PUT", "/:id"),
    ("delete", "DELETE", "/:id"),
]


def _join(*parts: str) -> str:
    cleaned = [p.strip("/") for p in parts if p and p.strip("/")]
    return "/" + "/".join(cleaned)


class ElixirExtractor(BaseExtractor):
    """Phoenix extractor for router.ex files; scope blocks prefix the routes inside them."""

    @property
    def language(self) -> Language:
        return Language.ELIXIR

    @property
    def extensions(self) -> Set[str]:
        return {".ex"}

    @property
    def frameworks(self) -> Set[str]:
        return {"phoenix"}

    @property
    def patterns(self) -> List[PatternDef]:
        return [
            # ===================== PHOENIX =====================
            PatternDef(
                regex=_ROUTE.pattern,
                framework="phoenix",
                method_group=1,
                route_group=2,
            ),
        ]

    def accepts(self, path: str) -> bool:
        name = PurePosixPath(path).name
        return name == "router.ex" or name.endswith("_router.ex")

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            m = _ROUTE.match(content, match.offset)
            if m:
                match.handler = f"{m.group(3).split('.')[-1]}.{m.group(4)}"
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        scopes = self._line_scopes(content)
        results = []

        for m in _ROUTE.finditer(content):
            scope = scopes[content.count("\n", 0, m.start())]
            if not scope:
                continue
            results.append(RawMatch(
                method=m.group(1).upper(),
                raw_path=_join(scope, m.group(2)),
                offset=m.start(),
                source_file=path,
                framework="phoenix",
                language=self.language,
                handler=f"{m.group(3).split('.')[-1]}.{m.group(4)}",
                metadata={"scope": scope},
            ))

        for m in _RESOURCES.finditer(content):
            scope = scopes[content.count("\n", 0, m.start())]
            results.extend(self._expand_resources(path, m, scope))
        return results

    @staticmethod
    def _line_scopes(content: str) -> List[str]:
        stack: List[Optional[str]] = []
        scopes: List[str] = []
        for line in content.split("\n"):
            scopes.append("/".join(s for s in stack if s))
            if _END.match(line):
                if stack:
                    stack.pop()
            elif _BLOCK_OPEN.search(line):
                scope = _SCOPE.match(line)
                stack.append(scope.group(1).strip("/") if scope else None)
        return scopes

    def _expand_resources(self, path: str, m: re.Match, scope: str) -> List[RawMatch]:
        only = except_ = None
        for kind, atoms in _ACTION_LIST.findall(m.group(3)):
            names = set(_ATOM.findall(atoms))
            if kind == "only":
                only = names
            else:
                except_ = names

        controller = m.group(2).split(".")[-1]
        results = []
        for action, method, suffix in _RESOURCE_ACTIONS:
            if only is not None and action not in only:
                continue
            if except_ and action in except_:
                continue
            results.append(RawMatch(
                method=method,
                raw_path=_join(scope, m.group(1)) + suffix,
                offset=m.start(),
                source_file=path,
                framework="phoenix",
                language=self.language,
                handler=f"{controller}.{action}",
                metadata={"resource": m.group(1).strip("/"), "action": action},
            ))
        return results
