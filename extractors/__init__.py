"""
Extractor package for the polyglot endpoint scanner.

Exports the raw-match model, the endpoint data model and every
language/framework extractor.
"""

from .base import (
    Language,
    PatternDef,
    RawMatch,
    BaseExtractor,
    combine_routes,
    find_block_end,
    split_arguments,
    line_of,
)
from .models import (
    Parameter,
    RequestBody,
    Response,
    ValidationRule,
    Validation,
    RateLimit,
    CacheDirective,
    Endpoint,
    Group,
)

from .nextjs import NextJsExtractor
from .javascript import JavaScriptExtractor
from .python import PythonExtractor
from .java import JavaExtractor
from .kotlin import KotlinExtractor
from .go import GoExtractor
from .ruby import RubyExtractor
from .php import PhpExtractor
from .rust import RustExtractor
from .dotnet import DotNetExtractor
from .elixir import ElixirExtractor
from .protocols import GraphQLExtractor, WebSocketExtractor, GrpcExtractor
from .paths import normalize_path, placeholder_template, path_param_names, is_param_segment
from .registry import ExtractorRegistry, extensions_for, accept_any

__all__ = [
    # Raw matches
    "Language",
    "PatternDef",
    "RawMatch",
    "BaseExtractor",
    "combine_routes",
    "find_block_end",
    "split_arguments",
    "line_of",
    # Endpoint model
    "Parameter",
    "RequestBody",
    "Response",
    "ValidationRule",
    "Validation",
    "RateLimit",
    "CacheDirective",
    "Endpoint",
    "Group",
    # Extractors
    "NextJsExtractor",
    "JavaScriptExtractor",
    "PythonExtractor",
    "JavaExtractor",
    "KotlinExtractor",
    "GoExtractor",
    "RubyExtractor",
    "PhpExtractor",
    "RustExtractor",
    "DotNetExtractor",
    "ElixirExtractor",
    "GraphQLExtractor",
    "WebSocketExtractor",
    "GrpcExtractor",
    # Paths
    "normalize_path",
    "placeholder_template",
    "path_param_names",
    "is_param_segment",
    # Registry
    "ExtractorRegistry",
    "extensions_for",
    "accept_any",
]
