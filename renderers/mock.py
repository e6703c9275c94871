"""Mock request / response payloads for an endpoint."""

from typing import Any, Dict, Optional

from extractors.models import Endpoint
from extractors.paths import path_param_names

from .values import SAMPLE_ID, SAMPLE_TIMESTAMP, placeholder_value

WRITES = ("POST", "PUT", "PATCH")

RESOURCE_FIELDS: Dict[str, Dict[str, Any]] = {
    "user": {"name": "John Doe", "email": "john@example.com", "role": "user"},
    "product": {"name": "Sample Product", "price": 99.99, "stock": 100},
    "order": {"status": "pending", "total": 199.99, "items": []},
    "post": {"title": "Sample Post", "content": "Lorem ipsum...", "author": "John Doe"},
}


def resource_name(path: str) -> str:
    segments = [s for s in path.split("/") if s and not s.startswith("{")]
    if not segments:
        return "item"
    last = segments[-1]
    return last[:-1] if last.endswith("s") else last


def request_example(endpoint: Endpoint) -> Optional[Dict[str, Any]]:
    if endpoint.request_body is None or endpoint.method not in WRITES:
        return None
    if isinstance(endpoint.request_body.example, dict):
        return dict(endpoint.request_body.example)

    fields = {p.name: placeholder_value(p.type, p.name) for p in endpoint.params_in("body")}
    if not fields:
        resource = resource_name(endpoint.path)
        fields = {"name": f"New {resource}", "description": f"Description for {resource}"}
    return fields


def render_mock(endpoint: Endpoint) -> Dict[str, Any]:
    """
    Request and response examples.

    Collection GETs (no path parameters) get a paginated list envelope;
    everything else a single-item envelope.
    """
    resource = resource_name(endpoint.path)
    item: Dict[str, Any] = {
        "id": SAMPLE_ID,
        "createdAt": SAMPLE_TIMESTAMP,
        "updatedAt": SAMPLE_TIMESTAMP,
    }
    success = next((r for r in endpoint.responses if r.status_code in (200, 201)), None)
    if success is not None and success.schema_ref:
        item["_type"] = success.schema_ref
    item.update(RESOURCE_FIELDS.get(resource.lower(), {
        "name": f"Sample {resource}",
        "description": f"A sample {resource}",
    }))

    if endpoint.method == "GET" and not path_param_names(endpoint.path):
        response = {
            "data": [item],
            "pagination": {"page": 1, "limit": 10, "total": 100, "totalPages": 10},
        }
    else:
        response = {"success": True, "data": item}

    return {
        "request_example": request_example(endpoint),
        "response_example": response,
    }
