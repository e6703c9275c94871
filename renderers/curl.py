"""cURL command for an endpoint."""

import json
from typing import List

from extractors.models import Endpoint

WRITES = ("POST", "PUT", "PATCH")
JSON = "application/json"
MULTIPART = "multipart/form-data"


def auth_flags(auth: str) -> List[str]:
    if auth in ("bearer", "jwt", "oauth"):
        return ["-H 'Authorization: Bearer YOUR_TOKEN'"]
    if auth == "apikey":
        return ["-H 'X-API-Key: YOUR_API_KEY'"]
    if auth == "basic":
        return ["-u 'username:password'"]
    if auth == "session":
        return ["-b 'session=YOUR_SESSION_ID'"]
    return []


def query_string(endpoint: Endpoint) -> str:
    query = endpoint.params_in("query")
    return "?" + "&".join(f"{p.name}=value" for p in query) if query else ""


def render_curl(endpoint: Endpoint, base_url: str = "http://localhost:3000") -> str:
    """Multi-line cURL command with auth placeholder, body skeleton and query string."""
    parts = ["curl"]
    if endpoint.method != "GET":
        parts.append(f"-X {endpoint.method}")

    body = endpoint.request_body
    if body is not None and body.content_type != MULTIPART:
        parts.append(f"-H 'Content-Type: {body.content_type}'")
    parts.extend(auth_flags(endpoint.auth))

    if body is not None and endpoint.method in WRITES:
        if body.content_type == MULTIPART:
            for p in endpoint.params_in("body"):
                parts.append(f"-F '{p.name}=@/path/to/file'" if p.type == "file" else f"-F '{p.name}=value'")
        else:
            fields = {p.name: f"<{p.type}>" for p in endpoint.params_in("body")}
            parts.append(f"-d '{json.dumps(fields, indent=2) if fields else '{}'}'")

    parts.append(f"'{base_url.rstrip('/')}{endpoint.path}{query_string(endpoint)}'")
    return " \\\n  ".join(parts)
