"""
Contract mining for raw route matches.

ContractMiner is the entry point; the recognizer modules are importable on
their own for callers that only need one concern.
"""

from .auth import detect_auth
from .directives import detect_api_version, extract_cache, extract_rate_limit, to_int
from .docs import DocInfo, extract_docs
from .middleware import extract_middleware
from .miner import ContractMiner, detect_async
from .params import Contract, json_type, recognizer_for
from .path_params import PathParameterExtractor, path_parameters
from .status_codes import StatusCodeAnalyzer, describe
from .validation import extract_validation

__all__ = [
    "ContractMiner",
    "Contract",
    "DocInfo",
    "PathParameterExtractor",
    "StatusCodeAnalyzer",
    "describe",
    "detect_api_version",
    "detect_async",
    "detect_auth",
    "extract_cache",
    "extract_docs",
    "extract_middleware",
    "extract_rate_limit",
    "extract_validation",
    "json_type",
    "path_parameters",
    "recognizer_for",
    "to_int",
]
