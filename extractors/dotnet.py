"""C#/.NET scanner: ASP.NET Core and Web API 2 controllers, Minimal API."""
from __future__ import annotations

import re
from typing import List, Set

from .base import BaseExtractor, Language, PatternDef, RawMatch, combine_routes, find_block_end

_CONTROLLER = re.compile(
    r'public\s+(?:abstract\s+|sealed\s+|partial\s+)*class\s+(\w+)\s*(?:<[^>]+>)?\s*:\s*'
    r'(?:Microsoft\.AspNetCore\.Mvc\.)?(\w*(?:Controller|ControllerBase|ApiController)\w*)'
)
_CLASS_ROUTE = re.compile(r'\[(?:Microsoft\.AspNetCore\.Mvc\.)?Route\s*\(\s*"([^"]+)"\s*\)\]')
_ROUTE_PREFIX = re.compile(r'\[RoutePrefix\s*\(\s*"([^"]+)"\s*\)\]')
_VERB_ATTRIBUTE = re.compile(
    r'\[(?:Microsoft\.AspNetCore\.Mvc\.)?Http(Get|Post|Put|Delete|Patch|Head|Options)'
    r'(?:\s*\(\s*(?:template\s*:\s*)?(?:"([^"]*)")?[^)]*\))?\s*(?:,\s*Route\s*\(\s*"([^"]+)"\s*\))?\s*\]'
)
_METHOD_ROUTE = re.compile(r'\[(?:Microsoft\.AspNetCore\.Mvc\.)?Route\s*\(\s*"([^"]+)"\s*\)\]')
_ACTION_SIGNATURE = re.compile(
    r'(?:public|private|protected|internal)\s+(?:static\s+)?(?:async\s+)?(?:virtual\s+)?(?:override\s+)?'
    r'[\w<>\[\],.?\s]+?\s+(\w+)\s*\('
)


def dotnet_route(base_route: str, method_route: str) -> str:
    """Attribute routes: '~/x' and '/x' on an action ignore the controller prefix."""
    if method_route.startswith("/") and not method_route.startswith("~/"):
        return "/" + method_route.lstrip("/")
    return combine_routes(base_route, method_route)


class DotNetExtractor(BaseExtractor):
    """
    .NET/C# extractor with controller-aware parsing.

    Controllers are walked body by body so each action combines its route
    with the controller's [Route]/[RoutePrefix] and the [controller] and
    [action] tokens are substituted.
    """

    @property
    def language(self) -> Language:
        return Language.DOTNET

    @property
    def extensions(self) -> Set[str]:
        return {".cs"}

    @property
    def frameworks(self) -> Set[str]:
        return {"aspnet"}

    @property
    def patterns(self) -> List[PatternDef]:
        # Minimal API only; controllers are handled by the heuristic pass
        return [
            PatternDef(
                regex=r'\b(?:app|endpoints|group|api|\w+Group)\.Map(Get|Post|Put|Delete|Patch)\s*\(\s*"([^"]+)"',
                framework="aspnet",
                method_group=1,
                route_group=2,
            ),
        ]

    def scan_with_patterns(self, content: str, path: str) -> List[RawMatch]:
        results = super().scan_with_patterns(content, path)
        for match in results:
            match.raw_path = "/" + match.raw_path.lstrip("/")
            match.metadata["minimal_api"] = True
            handler = re.search(r'"\s*,\s*([A-Z]\w*(?:\.\w+)*)\s*\)', content[match.offset:match.offset + 300])
            match.handler = handler.group(1).split(".")[-1] if handler else "lambda"
        return results

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for class_match in _CONTROLLER.finditer(content):
            results.extend(self._scan_controller(content, path, class_match))
        return results

    def _scan_controller(self, content: str, path: str, class_match: re.Match) -> List[RawMatch]:
        controller_name = class_match.group(1)
        preceding = content[max(0, class_match.start() - 500):class_match.start()]
        # Only the attribute run directly above the class
        breaks = list(re.finditer(r'[;}]\s*\n', preceding))
        if breaks:
            preceding = preceding[breaks[-1].end():]

        base_route = ""
        route_match = _CLASS_ROUTE.search(preceding)
        if route_match:
            base_route = route_match.group(1)
        prefix_match = _ROUTE_PREFIX.search(preceding)
        if prefix_match:
            base_route = prefix_match.group(1)

        short_name = controller_name[:-10] if controller_name.endswith("Controller") else controller_name
        base_route = re.sub(r'\[controller\]', short_name.lower(), base_route, flags=re.IGNORECASE)

        body_start = content.find('{', class_match.end())
        if body_start == -1:
            return []
        body_end = find_block_end(content, body_start)
        class_authorized = "[Authorize" in preceding

        results = []
        for verb in _VERB_ATTRIBUTE.finditer(content, body_start, body_end):
            signature = _ACTION_SIGNATURE.search(content, verb.end(), verb.end() + 1000)
            method_route = verb.group(2) or verb.group(3) or ""
            if not method_route:
                # [Route("...")] anywhere in the attribute run of this action
                run_start = max(content.rfind(ch, body_start, verb.start()) for ch in ";{}") + 1
                run_end = signature.start() if signature else verb.end()
                route_attr = _METHOD_ROUTE.search(content, run_start, run_end)
                if route_attr:
                    method_route = route_attr.group(1)

            action_name = signature.group(1) if signature else "Unknown"
            method_route = re.sub(r'\[action\]', action_name.lower(), method_route, flags=re.IGNORECASE)

            route = dotnet_route(base_route, method_route)
            if route == "/" and not base_route:
                route = f"/api/{short_name.lower()}"

            results.append(RawMatch(
                method=verb.group(1).upper(),
                raw_path=route,
                offset=verb.start(),
                source_file=path,
                framework="aspnet",
                language=self.language,
                handler=action_name,
                metadata={
                    "controller": controller_name,
                    "base_route": base_route,
                    "method_route": method_route,
                    "class_authorized": class_authorized,
                },
            ))
        return results
