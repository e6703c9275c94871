"""
OpenAPI Export
==============
Builds an OpenAPI 3.0.3 document from canonical endpoints.

One path item per normalized path and one operation per method. Every
schema name referenced from a request body or response is registered in
components.schemas as a placeholder object, so the document resolves.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set

import yaml

from contract.status_codes import describe
from extractors.models import Endpoint, Parameter

from .values import placeholder_value, schema_type

logger = logging.getLogger("endpoint_scanner.renderers.openapi")

OPENAPI_VERSION = "3.0.3"

SECURITY_SCHEMES: Dict[str, Dict[str, Any]] = {
    "bearer": {"type": "http", "scheme": "bearer"},
    "jwt": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
    "apikey": {"type": "apiKey", "in": "header", "name": "X-API-Key"},
    "basic": {"type": "http", "scheme": "basic"},
    "oauth": {
        "type": "oauth2",
        "flows": {
            "authorizationCode": {
                "authorizationUrl": "https://example.com/oauth/authorize",
                "tokenUrl": "https://example.com/oauth/token",
                "scopes": {},
            }
        },
    },
    "session": {"type": "apiKey", "in": "cookie", "name": "session"},
}


def generate_operation_id(path: str, method: str) -> str:
    clean_route = path.replace("/", "_").replace("{", "").replace("}", "")
    clean_route = re.sub(r'[^a-zA-Z0-9_]', '', clean_route)
    clean_route = clean_route.strip("_")

    if not clean_route:
        clean_route = "root"

    return f"{method.lower()}_{clean_route}"


def first_segment(path: str) -> Optional[str]:
    segments = [s for s in path.split("/") if s and not s.startswith("{")]
    return segments[0] if segments else None


def parameter_schema(param: Parameter) -> Dict[str, Any]:
    json_type = schema_type(param.type)
    if json_type == "file":
        return {"type": "string", "format": "binary"}
    if json_type == "array":
        return {"type": "array", "items": {"type": "string"}}
    return {"type": json_type}


def _ref(name: str, schemas: Set[str]) -> Dict[str, str]:
    schemas.add(name)
    return {"$ref": f"#/components/schemas/{name}"}


def _parameters(endpoint: Endpoint) -> List[Dict[str, Any]]:
    parameters = []
    for param in endpoint.parameters:
        if param.location not in ("path", "query", "header"):
            continue
        entry: Dict[str, Any] = {
            "name": param.name,
            "in": param.location,
            "required": True if param.location == "path" else param.required,
            "schema": parameter_schema(param),
        }
        if param.description:
            entry["description"] = param.description
        parameters.append(entry)
    return parameters


def _request_body(endpoint: Endpoint, schemas: Set[str]) -> Dict[str, Any]:
    body = endpoint.request_body
    if body.schema_ref:
        schema = _ref(body.schema_ref, schemas)
    else:
        fields = endpoint.params_in("body")
        schema = {"type": "object", "properties": {p.name: parameter_schema(p) for p in fields}}
        required = [p.name for p in fields if p.required]
        if required:
            schema["required"] = required

    media: Dict[str, Any] = {"schema": schema}
    if body.example is not None:
        media["example"] = body.example
    elif not body.schema_ref and endpoint.params_in("body"):
        media["example"] = {p.name: placeholder_value(p.type, p.name) for p in endpoint.params_in("body")}
    return {"required": body.required, "content": {body.content_type: media}}


def _responses(endpoint: Endpoint, schemas: Set[str]) -> Dict[str, Any]:
    responses: Dict[str, Any] = {}
    for response in endpoint.responses:
        code = str(response.status_code)
        if code in responses:
            continue
        entry: Dict[str, Any] = {"description": response.description or describe(response.status_code)}
        if response.content_type and response.status_code != 204:
            schema = _ref(response.schema_ref, schemas) if response.schema_ref else {"type": "object"}
            entry["content"] = {response.content_type: {"schema": schema}}
        responses[code] = entry
    if not responses:
        responses["200"] = {"description": describe(200)}
    return responses


def render_operation(endpoint: Endpoint, operation_id: str, schemas: Set[str]) -> Dict[str, Any]:
    operation: Dict[str, Any] = {
        "operationId": operation_id,
        "summary": endpoint.summary or endpoint.label,
        "tags": list(endpoint.tags) or [first_segment(endpoint.path) or "default"],
    }
    description = endpoint.description or f"Discovered in {endpoint.source_file}:{endpoint.line_number} ({endpoint.framework})"
    operation["description"] = description
    if endpoint.deprecated:
        operation["deprecated"] = True

    parameters = _parameters(endpoint)
    if parameters:
        operation["parameters"] = parameters
    if endpoint.request_body is not None:
        operation["requestBody"] = _request_body(endpoint, schemas)
    operation["responses"] = _responses(endpoint, schemas)
    if endpoint.auth != "none":
        operation["security"] = [{endpoint.auth: []}]
    return operation


def render_openapi(endpoints: List[Endpoint], title: str = "API",
                   base_url: str = "http://localhost:3000") -> Dict[str, Any]:
    """
    OpenAPI 3.0.3 document as a dict.

    A (method, path) pair already present keeps its first operation; the
    set of (method, path) pairs under `paths` equals the endpoints' set.
    """
    paths: Dict[str, Dict[str, Any]] = {}
    operation_ids: Set[str] = set()
    schemas: Set[str] = set()
    auth_kinds: List[str] = []
    tags: List[str] = []

    for ep in endpoints:
        path_item = paths.setdefault(ep.path, {})
        method = ep.method.lower()
        if method in path_item:
            logger.debug(f"Skipping duplicate operation {ep.label} from {ep.source_file}")
            continue

        operation_id = generate_operation_id(ep.path, method)
        suffix = 2
        while operation_id in operation_ids:
            operation_id = f"{generate_operation_id(ep.path, method)}_{suffix}"
            suffix += 1
        operation_ids.add(operation_id)

        operation = render_operation(ep, operation_id, schemas)
        path_item[method] = operation
        for tag in operation["tags"]:
            if tag not in tags:
                tags.append(tag)
        if ep.auth != "none" and ep.auth not in auth_kinds:
            auth_kinds.append(ep.auth)

    components: Dict[str, Any] = {
        "schemas": {
            name: {"type": "object", "description": f"Discovered type: {name}"}
            for name in sorted(schemas)
        },
    }
    schemes = {kind: SECURITY_SCHEMES[kind] for kind in auth_kinds if kind in SECURITY_SCHEMES}
    if schemes:
        components["securitySchemes"] = schemes

    return {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": title,
            "version": "1.0.0",
            "description": f"Endpoints discovered in {title}",
        },
        "servers": [{"url": base_url.rstrip("/")}],
        "tags": [{"name": tag} for tag in tags],
        "paths": paths,
        "components": components,
    }


def to_yaml(document: Dict[str, Any]) -> str:
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
