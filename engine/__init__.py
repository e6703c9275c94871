"""
Scan engine: configuration, framework detection, tree walking,
canonicalization and the extract() entry point.
"""

from .config import ConfigError, ScannerConfig
from .detector import detect_framework
from .canonical import canonical_key, canonicalize, group_endpoints, merge_into, normalize_path
from .walker import SourceWalker, ignore_dirs_for
from .extract import EndpointScanner, ExtractionResult, extract

__all__ = [
    "ConfigError",
    "ScannerConfig",
    "detect_framework",
    "canonical_key",
    "canonicalize",
    "group_endpoints",
    "merge_into",
    "normalize_path",
    "SourceWalker",
    "ignore_dirs_for",
    "EndpointScanner",
    "ExtractionResult",
    "extract",
]
