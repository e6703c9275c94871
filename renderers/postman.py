"""Postman Collection v2.1 export."""

import json
from typing import Any, Dict, List

from extractors.models import Endpoint

WRITES = ("POST", "PUT", "PATCH")
SCHEMA_URL = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


def postman_path(path: str) -> List[str]:
    """/users/{id} -> ["users", ":id"]"""
    return [
        f":{segment[1:-1]}" if segment.startswith("{") and segment.endswith("}") else segment
        for segment in path.split("/") if segment
    ]


def _headers(endpoint: Endpoint) -> List[Dict[str, str]]:
    headers = []
    if endpoint.request_body is not None:
        headers.append({"key": "Content-Type", "value": endpoint.request_body.content_type})
    if endpoint.auth in ("bearer", "jwt", "oauth"):
        headers.append({"key": "Authorization", "value": "Bearer {{token}}"})
    elif endpoint.auth == "apikey":
        headers.append({"key": "X-API-Key", "value": "{{apiKey}}"})
    return headers


def _body(endpoint: Endpoint) -> Dict[str, Any]:
    fields = endpoint.params_in("body")
    if endpoint.request_body.content_type == "multipart/form-data":
        return {
            "mode": "formdata",
            "formdata": [
                {"key": p.name, "type": "file" if p.type == "file" else "text", "value": ""}
                for p in fields
            ],
        }
    if endpoint.request_body.content_type == "application/x-www-form-urlencoded":
        return {"mode": "urlencoded", "urlencoded": [{"key": p.name, "value": ""} for p in fields]}
    return {
        "mode": "raw",
        "raw": json.dumps({p.name: "" for p in fields}, indent=2),
        "options": {"raw": {"language": "json"}},
    }


def render_request(endpoint: Endpoint) -> Dict[str, Any]:
    segments = postman_path(endpoint.path)
    url: Dict[str, Any] = {
        "raw": "{{baseUrl}}/" + "/".join(segments),
        "host": ["{{baseUrl}}"],
        "path": segments,
    }
    path_params = endpoint.params_in("path")
    if path_params:
        url["variable"] = [{"key": p.name, "value": ""} for p in path_params]
    query = endpoint.params_in("query")
    if query:
        url["query"] = [{"key": p.name, "value": "", "disabled": not p.required} for p in query]

    request: Dict[str, Any] = {
        "method": endpoint.method,
        "header": _headers(endpoint),
        "url": url,
    }
    if endpoint.description:
        request["description"] = endpoint.description
    if endpoint.request_body is not None and endpoint.method in WRITES:
        request["body"] = _body(endpoint)
    return request


def render_postman(endpoints: List[Endpoint], name: str = "API",
                   base_url: str = "http://localhost:3000") -> Dict[str, Any]:
    """One folder per first path segment, requests in endpoint order."""
    folders: Dict[str, List[Dict[str, Any]]] = {}
    for ep in endpoints:
        segments = [s for s in ep.path.split("/") if s]
        folder = segments[0] if segments else "root"
        folders.setdefault(folder, []).append({
            "name": ep.label,
            "request": render_request(ep),
            "response": [],
        })

    return {
        "info": {"name": f"{name} API", "schema": SCHEMA_URL},
        "variable": [
            {"key": "baseUrl", "value": base_url.rstrip("/")},
            {"key": "token", "value": ""},
            {"key": "apiKey", "value": ""},
        ],
        "item": [{"name": folder, "item": items} for folder, items in folders.items()],
    }
