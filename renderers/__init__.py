"""
Artifact renderers: OpenAPI, Postman, cURL, SDK snippets and mock payloads.
"""

from .curl import render_curl
from .mock import render_mock
from .openapi import render_openapi, to_yaml
from .postman import render_postman
from .sdk import render_sdk_snippets
from .values import placeholder_value, schema_type

__all__ = [
    "render_curl",
    "render_mock",
    "render_openapi",
    "to_yaml",
    "render_postman",
    "render_sdk_snippets",
    "placeholder_value",
    "schema_type",
]
