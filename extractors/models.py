"""
Endpoint contract models shared by the miner, canonicalizer, analytics and renderers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

AUTH_TYPES = ("jwt", "session", "apikey", "oauth", "basic", "bearer", "none")
PARAM_LOCATIONS = ("path", "query", "body", "header")


@dataclass
class Parameter:
    name: str
    type: str = "string"
    required: bool = False
    location: str = "query"
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "in": self.location,
        }
        if self.description:
            data["description"] = self.description
        return data


@dataclass
class RequestBody:
    content_type: str = "application/json"
    schema_ref: Optional[str] = None
    example: Optional[Any] = None
    required: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content_type": self.content_type,
            "schema": self.schema_ref,
            "example": self.example,
            "required": self.required,
        }


@dataclass
class Response:
    status_code: int
    content_type: Optional[str] = "application/json"
    schema_ref: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status_code": self.status_code,
            "content_type": self.content_type,
            "schema": self.schema_ref,
            "description": self.description,
        }


@dataclass
class ValidationRule:
    field: str
    rule: str
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "rule": self.rule, "message": self.message}


@dataclass
class Validation:
    library: str
    rules: List[ValidationRule] = field(default_factory=list)
    schema: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "library": self.library,
            "schema": self.schema,
            "rules": [r.to_dict() for r in self.rules],
        }


@dataclass
class RateLimit:
    limit: Optional[int] = None
    window: Optional[str] = None
    key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"limit": self.limit, "window": self.window, "key": self.key}


@dataclass
class CacheDirective:
    ttl: Optional[int] = None
    strategy: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"ttl": self.ttl, "strategy": self.strategy, "tags": list(self.tags)}


@dataclass
class Endpoint:
    """A mined endpoint contract. Identity is (method, normalized path, source file)."""
    method: str
    path: str
    source_file: str
    framework: str
    language: str
    handler_name: str = "anonymous"
    is_async: bool = False
    line_number: int = 1
    raw_path: str = ""
    offset: int = 0
    parameters: List[Parameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: List[Response] = field(default_factory=list)
    auth: str = "none"
    middleware: List[str] = field(default_factory=list)
    validation: Optional[Validation] = None
    rate_limit: Optional[RateLimit] = None
    cache: Optional[CacheDirective] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    deprecated: bool = False
    api_version: Optional[str] = None
    kind: str = "rest"
    analytics: Optional[Any] = None

    @property
    def id(self) -> str:
        return f"{self.method} {self.path} @ {self.source_file}"

    @property
    def label(self) -> str:
        return f"{self.method} {self.path}"

    def params_in(self, location: str) -> List[Parameter]:
        return [p for p in self.parameters if p.location == location]

    def add_parameter(self, param: Parameter) -> bool:
        """Append param unless one with the same name and location exists."""
        for existing in self.parameters:
            if existing.name == param.name and existing.location == param.location:
                return False
        self.parameters.append(param)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "method": self.method,
            "path": self.path,
            "source_file": self.source_file,
            "line_number": self.line_number,
            "handler_name": self.handler_name,
            "is_async": self.is_async,
            "framework": self.framework,
            "language": self.language,
            "kind": self.kind,
            "parameters": [p.to_dict() for p in self.parameters],
            "request_body": self.request_body.to_dict() if self.request_body else None,
            "responses": [r.to_dict() for r in self.responses],
            "auth": self.auth,
            "middleware": list(self.middleware),
            "validation": self.validation.to_dict() if self.validation else None,
            "rate_limit": self.rate_limit.to_dict() if self.rate_limit else None,
            "cache": self.cache.to_dict() if self.cache else None,
            "description": self.description,
            "summary": self.summary,
            "tags": list(self.tags),
            "deprecated": self.deprecated,
            "api_version": self.api_version,
            "analytics": self.analytics.to_dict() if self.analytics else None,
        }


@dataclass
class Group:
    prefix: str
    endpoints: List[Endpoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prefix": self.prefix,
            "count": len(self.endpoints),
            "endpoints": [e.id for e in self.endpoints],
        }
