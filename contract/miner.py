"""
Contract Miner
==============
Secondary pass over the context window around each raw match.

Recovers parameters, request body, responses, auth scheme, middleware,
validation, rate limit, cache directives, API version and documentation.
Every recognizer runs isolated: one that raises contributes its neutral
value and the rest of the endpoint is still mined.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from extractors.base import Language, RawMatch, annotation_start, line_of
from extractors.models import Endpoint, Parameter, RequestBody, Response
from extractors.paths import normalize_path, path_param_names

from .auth import detect_auth
from .directives import detect_api_version, extract_cache, extract_rate_limit
from .docs import DocInfo, extract_docs
from .middleware import extract_middleware
from .params import Contract, recognizer_for
from .path_params import PathParameterExtractor
from .status_codes import describe
from .validation import WINDOW as VALIDATION_WINDOW, extract_validation

logger = logging.getLogger("endpoint_scanner.contract.miner")

AUTH_BACKWARD = 500
AUTH_FORWARD = 500
PROTOCOL_KINDS = {"graphql", "websocket", "grpc"}

_ASYNC_MARKERS: Dict[Language, re.Pattern] = {
    Language.JAVASCRIPT: re.compile(r'\basync\b'),
    Language.TYPESCRIPT: re.compile(r'\basync\b'),
    Language.JAVA: re.compile(r'CompletableFuture|Mono<|Flux<|DeferredResult|Callable<|\bsuspend\s+fun\b'),
    Language.KOTLIN: re.compile(r'\bsuspend\s+fun\b|Mono<|Flux<'),
    Language.DOTNET: re.compile(r'\basync\s+Task\b'),
}
_PY_DEF = re.compile(r'(async\s+)?def\s+\w+')
_RUST_FN = re.compile(r'(async\s+)?fn\s+\w+')


def detect_async(language: Language, window: str) -> bool:
    """Whether the handler declared at the start of window is asynchronous."""
    if language == Language.PYTHON:
        m = _PY_DEF.search(window)
        return bool(m and m.group(1))
    if language == Language.RUST:
        m = _RUST_FN.search(window)
        return bool(m and m.group(1))
    marker = _ASYNC_MARKERS.get(language)
    if marker is None:
        return False
    # only the declaration itself, not whatever follows the handler
    return bool(marker.search(window[:400]))


class ContractMiner:
    """
    Turns RawMatch records into Endpoint contracts.

    Windows may be bounded by the neighbouring declarations in the same file
    (lower / upper). Backward windows also stop at the previous statement
    end, so the annotations above a route are read but the preceding
    handler body is not.
    """

    def mine(self, raw: RawMatch, content: str, lower: int = 0, upper: Optional[int] = None) -> Endpoint:
        path = normalize_path(raw.raw_path)
        endpoint = Endpoint(
            method=raw.method.upper(),
            path=path,
            source_file=raw.source_file,
            framework=raw.framework,
            language=raw.language.value,
            handler_name=raw.handler or "anonymous",
            line_number=line_of(content, raw.offset),
            raw_path=raw.raw_path,
            offset=raw.offset,
        )
        metadata = raw.metadata or {}

        if metadata.get("kind") in PROTOCOL_KINDS:
            self._apply_declared(endpoint, metadata)
            endpoint.auth = self._safely("auth", detect_auth, "none", self._auth_window(content, raw.offset, lower, upper))
        else:
            self._mine_source(endpoint, raw, content, lower, upper)

        self._reconcile_path_parameters(endpoint, raw.raw_path)

        if not endpoint.responses:
            endpoint.responses.append(Response(status_code=200, content_type="application/json",
                                               description=describe(200)))
        endpoint.responses.sort(key=lambda r: r.status_code)
        return endpoint

    # ===================== SOURCE MINING =====================

    def _mine_source(self, endpoint: Endpoint, raw: RawMatch, content: str, lower: int, upper: Optional[int]):
        offset = raw.offset
        recognizer = recognizer_for(raw.language, raw.framework)
        forward = self._forward(content, offset, recognizer.window, upper)
        names = path_param_names(endpoint.path)

        contract: Contract = self._safely(
            recognizer.name, recognizer.func, Contract(), forward, endpoint.method, names, raw.framework,
        )
        for param in contract.parameters:
            endpoint.add_parameter(param)
        endpoint.request_body = contract.request_body
        endpoint.responses = list(contract.responses)

        auth_window = self._auth_window(content, offset, lower, upper)
        endpoint.auth = self._safely("auth", detect_auth, "none", auth_window)
        if endpoint.auth == "none" and self._dotnet_authorized(raw, auth_window):
            endpoint.auth = "bearer"

        endpoint.middleware = self._safely("middleware", extract_middleware, [], content, offset, lower, upper)
        endpoint.validation = self._safely(
            "validation", extract_validation, None, self._forward(content, offset, VALIDATION_WINDOW, upper),
        )
        # rate limiters and cache headers are usually configured once per file
        endpoint.rate_limit = self._safely("rate_limit", extract_rate_limit, None, content)
        endpoint.cache = self._safely("cache", extract_cache, None, content)

        docs: DocInfo = self._safely("docs", extract_docs, DocInfo(), content, offset, lower, upper)
        endpoint.description = docs.description
        endpoint.summary = docs.summary
        endpoint.tags = list(docs.tags)
        endpoint.deprecated = docs.deprecated

        endpoint.api_version = self._safely("version", detect_api_version, None, endpoint.path, auth_window)
        endpoint.is_async = bool(raw.metadata.get("is_async")) or self._safely(
            "async", detect_async, False, raw.language, forward,
        )

    @staticmethod
    def _dotnet_authorized(raw: RawMatch, window: str) -> bool:
        if raw.language != Language.DOTNET:
            return False
        if "[AllowAnonymous" in window:
            return False
        return bool(raw.metadata.get("class_authorized")) or "[Authorize" in window

    # ===================== DECLARED CONTRACTS =====================

    def _apply_declared(self, endpoint: Endpoint, metadata: Dict[str, Any]):
        """GraphQL / WebSocket / gRPC matches carry their contract in metadata."""
        endpoint.kind = metadata["kind"]
        endpoint.tags = list(metadata.get("tags", []))
        endpoint.description = metadata.get("description")
        endpoint.summary = metadata.get("summary")
        endpoint.is_async = bool(metadata.get("is_async", False))

        for item in metadata.get("parameters", []):
            endpoint.add_parameter(Parameter(
                name=item["name"],
                type=item.get("type", "string"),
                required=bool(item.get("required", False)),
                location=item.get("location", "query"),
                description=item.get("description"),
            ))

        body = metadata.get("request_body")
        if body:
            endpoint.request_body = RequestBody(
                content_type=body.get("content_type", "application/json"),
                schema_ref=body.get("schema_ref"),
                required=body.get("required", True),
            )

        for item in metadata.get("responses", []):
            endpoint.responses.append(Response(
                status_code=item["status_code"],
                content_type=item.get("content_type"),
                schema_ref=item.get("schema_ref"),
                description=item.get("description") or describe(item["status_code"]),
            ))

    # ===================== HELPERS =====================

    def _reconcile_path_parameters(self, endpoint: Endpoint, raw_path: str):
        """
        Path parameters are exactly the template's placeholders, in template order.

        Recognized path parameters keep their richer type when the template
        names them; query parameters shadowed by a path name are dropped.
        """
        names = path_param_names(endpoint.path)
        from_template = {p.name: p for p in PathParameterExtractor.extract(endpoint.path)}
        hinted = {p.name: p for p in PathParameterExtractor.extract(raw_path)}
        recognized = {p.name: p for p in endpoint.parameters if p.location == "path"}

        path_params: List[Parameter] = []
        for name in names:
            if any(p.name == name for p in path_params):
                continue
            param = recognized.get(name) or hinted.get(name) or from_template[name]
            param.required = True
            path_params.append(param)

        others = [
            p for p in endpoint.parameters
            if p.location != "path" and not (p.location == "query" and p.name in names)
        ]
        endpoint.parameters = path_params + others

    @staticmethod
    def _forward(content: str, offset: int, size: int, upper: Optional[int]) -> str:
        end = offset + size if upper is None else min(offset + size, max(upper, offset))
        return content[offset:end]

    @staticmethod
    def _auth_window(content: str, offset: int, lower: int, upper: Optional[int]) -> str:
        start = annotation_start(content, offset, lower, AUTH_BACKWARD)
        end = offset + AUTH_FORWARD if upper is None else min(offset + AUTH_FORWARD, max(upper, offset))
        return content[start:end]

    @staticmethod
    def _safely(name: str, func: Callable, default: Any, *args):
        try:
            return func(*args)
        except Exception as e:
            logger.debug(f"Recognizer '{name}' failed: {e}")
            return default
