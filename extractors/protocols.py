"""
Protocol scanners: GraphQL schemas, WebSocket servers, gRPC services.

These run next to the framework extractors. Each match carries its declared
contract in metadata (kind, tags, description, parameters, request_body,
responses) which the contract miner takes over as-is.
"""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Dict, List, Set

from .base import BaseExtractor, Language, RawMatch, find_block_end

# ===================== GRAPHQL =====================

_GRAPHQL_ROOT = re.compile(r'(?:extend\s+)?type\s+(Query|Mutation|Subscription)\s*\{')
_GRAPHQL_FIELD = re.compile(r'^[ \t]*(\w+)\s*(?:\(([^)]*)\))?\s*:\s*([^\n#]+)', re.MULTILINE)
_GRAPHQL_ARG = re.compile(r'(\w+)\s*:\s*([\w\[\]!]+)')
_GRAPHQL_CODE_SUFFIXES = (".ts", ".js", ".py", ".go", ".rb", ".java", ".kt")

# ===================== WEBSOCKET =====================

_SOCKETIO_EVENT = re.compile(r'\b(?:io|socket)\.on\s*\(\s*[\'"](\w+)[\'"]')
_SOCKETIO_LIFECYCLE = {"connection", "connect", "disconnect", "error"}
_WS_SERVER = re.compile(r'new\s+(?:WebSocketServer|WebSocket\.Server|ws\.Server)\s*\(|\bws\.Server\b')
_WS_PATH = re.compile(r'path\s*:\s*[\'"]([^\'"]+)[\'"]')

# ===================== GRPC =====================

_PROTO_PACKAGE = re.compile(r'^\s*package\s+([\w.]+)\s*;', re.MULTILINE)
_PROTO_SERVICE = re.compile(r'\bservice\s+(\w+)\s*\{')
_PROTO_RPC = re.compile(
    r'rpc\s+(\w+)\s*\(\s*(stream\s+)?([\w.]+)\s*\)\s*returns\s*\(\s*(stream\s+)?([\w.]+)\s*\)'
)


def _graphql_type(type_ref: str) -> str:
    base = type_ref.strip().rstrip("!").strip("[]!")
    return {
        "Int": "integer",
        "Float": "number",
        "Boolean": "boolean",
        "ID": "string",
        "String": "string",
    }.get(base, "object")


class GraphQLExtractor(BaseExtractor):
    """Root operation fields of a GraphQL schema; one POST /graphql/<field> per field."""

    @property
    def language(self) -> Language:
        return Language.GRAPHQL

    @property
    def extensions(self) -> Set[str]:
        return {".graphql", ".gql"}

    @property
    def frameworks(self) -> Set[str]:
        return {"graphql"}

    def accepts(self, path: str) -> bool:
        name = PurePosixPath(path).name.lower()
        if name.endswith((".graphql", ".gql")):
            return True
        return ("schema" in name or "resolver" in name) and name.endswith(_GRAPHQL_CODE_SUFFIXES)

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        for root in _GRAPHQL_ROOT.finditer(content):
            operation = root.group(1)
            body_start = root.end() - 1
            body_end = find_block_end(content, body_start)
            for field in _GRAPHQL_FIELD.finditer(content, body_start + 1, body_end - 1):
                name = field.group(1)
                return_type = field.group(3).strip().rstrip(",")
                parameters = [
                    {
                        "name": arg.group(1),
                        "type": _graphql_type(arg.group(2)),
                        "required": arg.group(2).endswith("!"),
                        "location": "body",
                        "description": f"GraphQL argument: {arg.group(2)}",
                    }
                    for arg in _GRAPHQL_ARG.finditer(field.group(2) or "")
                ]
                results.append(RawMatch(
                    method="POST",
                    raw_path=f"/graphql/{name}",
                    offset=field.start(),
                    source_file=path,
                    framework="graphql",
                    language=self.language_for(path),
                    handler=name,
                    metadata={
                        "kind": "graphql",
                        "operation": operation.lower(),
                        "tags": ["GraphQL", operation],
                        "description": f"GraphQL {operation}: {name}",
                        "parameters": parameters,
                        "request_body": {"content_type": "application/json", "schema_ref": f"{name}Request"},
                        "responses": [{"status_code": 200, "content_type": "application/json",
                                       "schema_ref": re.sub(r'[\[\]!]', '', return_type),
                                       "description": return_type}],
                    },
                ))
        return results


class WebSocketExtractor(BaseExtractor):
    """socket.io events and ws servers; the upgrade request is modelled as GET."""

    @property
    def language(self) -> Language:
        return Language.JAVASCRIPT

    @property
    def extensions(self) -> Set[str]:
        return {".ts", ".js", ".mjs", ".py", ".java", ".go"}

    @property
    def frameworks(self) -> Set[str]:
        return {"websocket"}

    def language_for(self, path: str) -> Language:
        suffix = PurePosixPath(path).suffix
        return {
            ".ts": Language.TYPESCRIPT,
            ".py": Language.PYTHON,
            ".java": Language.JAVA,
            ".go": Language.GO,
        }.get(suffix, Language.JAVASCRIPT)

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        results = []
        seen: Set[str] = set()
        for m in _SOCKETIO_EVENT.finditer(content):
            event = m.group(1)
            if event in _SOCKETIO_LIFECYCLE or event in seen:
                continue
            seen.add(event)
            results.append(RawMatch(
                method="GET",
                raw_path=f"/socket.io/{event}",
                offset=m.start(),
                source_file=path,
                framework="socket.io",
                language=self.language_for(path),
                handler=event,
                metadata={
                    "kind": "websocket",
                    "tags": ["WebSocket"],
                    "description": f"WebSocket Event: {event}",
                    "responses": [{"status_code": 101, "description": "Switching Protocols"}],
                },
            ))

        server = _WS_SERVER.search(content)
        if server:
            ws_path = _WS_PATH.search(content, server.start())
            results.append(RawMatch(
                method="GET",
                raw_path=ws_path.group(1) if ws_path else "/ws",
                offset=server.start(),
                source_file=path,
                framework="websocket",
                language=self.language_for(path),
                handler="WebSocketServer",
                metadata={
                    "kind": "websocket",
                    "tags": ["WebSocket"],
                    "description": "WebSocket Server",
                    "responses": [{"status_code": 101, "description": "Switching Protocols"}],
                },
            ))
        return results


class GrpcExtractor(BaseExtractor):
    """Protocol Buffers services: rpc M(Req) returns (Res) -> POST /<package>.Service/M"""

    @property
    def language(self) -> Language:
        return Language.PROTOBUF

    @property
    def extensions(self) -> Set[str]:
        return {".proto"}

    @property
    def frameworks(self) -> Set[str]:
        return {"grpc"}

    def scan_with_heuristics(self, content: str, path: str) -> List[RawMatch]:
        package = _PROTO_PACKAGE.search(content)
        qualifier = f"{package.group(1)}." if package else ""

        results = []
        for service in _PROTO_SERVICE.finditer(content):
            body_start = service.end() - 1
            body_end = find_block_end(content, body_start)
            for rpc in _PROTO_RPC.finditer(content, body_start, body_end):
                results.append(self._rpc_match(content, path, qualifier, service.group(1), rpc))
        return results

    def _rpc_match(self, content: str, path: str, qualifier: str, service: str, rpc: re.Match) -> RawMatch:
        method_name, request_type, response_type = rpc.group(1), rpc.group(3), rpc.group(5)
        streaming = bool(rpc.group(2) or rpc.group(4))

        line_start = content.rfind("\n", 0, rpc.start())
        previous_line_start = content.rfind("\n", 0, max(line_start, 0))
        previous = content[previous_line_start + 1:max(line_start, 0)].strip()
        description = previous[2:].strip() if previous.startswith("//") else (
            f"gRPC {'streaming ' if streaming else ''}method: {service}.{method_name}"
        )

        tags = ["gRPC", service] + (["Streaming"] if streaming else [])
        metadata: Dict = {
            "kind": "grpc",
            "tags": tags,
            "description": description,
            "summary": f"{service}/{method_name}",
            "parameters": [{
                "name": "request",
                "type": request_type,
                "required": True,
                "location": "body",
                "description": f"gRPC request message: {request_type}",
            }],
            "request_body": {"content_type": "application/grpc", "schema_ref": request_type},
            "responses": [{
                "status_code": 200,
                "content_type": "application/grpc",
                "schema_ref": response_type,
                "description": f"Stream of {response_type}" if streaming else response_type,
            }],
            "is_async": True,
        }
        return RawMatch(
            method="POST",
            raw_path=f"/{qualifier}{service}/{method_name}",
            offset=rpc.start(),
            source_file=path,
            framework="grpc",
            language=self.language,
            handler=method_name,
            metadata=metadata,
        )
