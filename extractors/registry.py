"""Extractor registry: framework tag -> extractors to run."""
from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Set

from .base import BaseExtractor
from .dotnet import DotNetExtractor
from .elixir import ElixirExtractor
from .go import GoExtractor
from .java import JavaExtractor
from .javascript import JavaScriptExtractor
from .kotlin import KotlinExtractor
from .nextjs import NextJsExtractor
from .php import PhpExtractor
from .protocols import GraphQLExtractor, GrpcExtractor, WebSocketExtractor
from .python import PythonExtractor
from .ruby import RubyExtractor
from .rust import RustExtractor

FRAMEWORK_EXTRACTORS: List[type] = [
    NextJsExtractor,
    JavaScriptExtractor,
    PythonExtractor,
    JavaExtractor,
    KotlinExtractor,
    GoExtractor,
    RubyExtractor,
    PhpExtractor,
    RustExtractor,
    DotNetExtractor,
    ElixirExtractor,
]

PROTOCOL_EXTRACTORS: List[type] = [
    GraphQLExtractor,
    WebSocketExtractor,
    GrpcExtractor,
]


class ExtractorRegistry:
    """
    Maps framework tags to extractor instances.

    Extractors are stateless, so one instance of each is shared by every
    lookup and every worker thread.
    """

    def __init__(self, include_protocols: bool = True):
        self.include_protocols = include_protocols
        self.extractors: List[BaseExtractor] = [cls() for cls in FRAMEWORK_EXTRACTORS]
        self.protocols: List[BaseExtractor] = [cls() for cls in PROTOCOL_EXTRACTORS]
        self._by_framework: Dict[str, List[BaseExtractor]] = {}
        for extractor in self.extractors:
            for tag in extractor.frameworks:
                self._by_framework.setdefault(tag, []).append(extractor)

    @property
    def tags(self) -> Set[str]:
        return set(self._by_framework)

    def for_framework(self, framework: str) -> List[BaseExtractor]:
        """Extractors for a tag; every extractor (fallback mode) when the tag has none."""
        selected = list(self._by_framework.get(framework) or self.extractors)
        if self.include_protocols:
            selected.extend(self.protocols)
        return selected

    def is_fallback(self, framework: str) -> bool:
        return framework not in self._by_framework


def extensions_for(extractors: Sequence[BaseExtractor]) -> Set[str]:
    extensions: Set[str] = set()
    for extractor in extractors:
        extensions |= extractor.extensions
    return extensions


def accept_any(extractors: Sequence[BaseExtractor]) -> Callable[[str], bool]:
    """Walker filter: a file qualifies when at least one extractor accepts it."""
    def accept(path: str) -> bool:
        return any(extractor.accepts(path) for extractor in extractors)
    return accept
