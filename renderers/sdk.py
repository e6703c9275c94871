"""
SDK Snippets
============
Client-code snippets for one endpoint: TypeScript (fetch), JavaScript
(axios), Python (requests) and cURL. Path parameters become template
variables of the target language; body fields get placeholder values.
"""

import json
import re
from pprint import pformat
from typing import Any, Dict

from extractors.models import Endpoint

from .curl import query_string
from .values import placeholder_value

WRITES = ("POST", "PUT", "PATCH")
_PARAM = re.compile(r'\{(\w+)\}')


def _indent(text: str, prefix: str) -> str:
    lines = text.split("\n")
    return "\n".join([lines[0]] + [prefix + line for line in lines[1:]])


def _body(endpoint: Endpoint) -> Dict[str, Any]:
    return {p.name: placeholder_value(p.type, p.name) for p in endpoint.params_in("body")}


def _authorized(endpoint: Endpoint) -> bool:
    return endpoint.auth != "none"


def typescript_snippet(endpoint: Endpoint, base_url: str) -> str:
    url = base_url + _PARAM.sub(r'${\1}', endpoint.path) + query_string(endpoint)
    has_body = endpoint.method in WRITES and endpoint.request_body is not None
    lines = [
        "// TypeScript",
        f"const response = await fetch(`{url}`, {{",
        f"  method: '{endpoint.method}',",
        "  headers: {",
        "    'Content-Type': 'application/json',",
    ]
    if _authorized(endpoint):
        lines.append("    'Authorization': 'Bearer YOUR_TOKEN',")
    lines.append("  },")
    if has_body:
        lines.append(f"  body: JSON.stringify({_indent(json.dumps(_body(endpoint), indent=2), '  ')}),")
    lines += ["});", "", "const data = await response.json();", "console.log(data);"]
    return "\n".join(lines)


def javascript_snippet(endpoint: Endpoint, base_url: str) -> str:
    url = base_url + _PARAM.sub(r'${\1}', endpoint.path) + query_string(endpoint)
    has_body = endpoint.method in WRITES and endpoint.request_body is not None
    body = f"{json.dumps(_body(endpoint), indent=2)}, " if has_body else ""
    lines = [
        "// JavaScript (Node.js with axios)",
        "const axios = require('axios');",
        "",
        f"const response = await axios.{endpoint.method.lower()}(`{url}`, {body}{{",
        "  headers: {",
        "    'Content-Type': 'application/json',",
    ]
    if _authorized(endpoint):
        lines.append("    'Authorization': 'Bearer YOUR_TOKEN',")
    lines += ["  },", "});", "", "console.log(response.data);"]
    return "\n".join(lines)


def python_snippet(endpoint: Endpoint, base_url: str) -> str:
    has_body = endpoint.method in WRITES and endpoint.request_body is not None
    query = endpoint.params_in("query")
    lines = [
        "# Python",
        "import requests",
        "",
        "response = requests.request(",
        f"    \"{endpoint.method}\",",
        f"    f\"{base_url}{endpoint.path}\",",
    ]
    if query:
        lines.append("    params={" + ", ".join(f'"{p.name}": "value"' for p in query) + "},")
    if has_body:
        lines.append(f"    json={_indent(pformat(_body(endpoint), sort_dicts=False), '    ')},")
    lines += ["    headers={", "        \"Content-Type\": \"application/json\","]
    if _authorized(endpoint):
        lines.append("        \"Authorization\": \"Bearer YOUR_TOKEN\",")
    lines += ["    },", ")", "", "print(response.json())"]
    return "\n".join(lines)


def curl_snippet(endpoint: Endpoint, base_url: str) -> str:
    has_body = endpoint.method in WRITES and endpoint.request_body is not None
    lines = [
        "# cURL",
        f"curl -X {endpoint.method} \\",
        f"  '{base_url}{endpoint.path}{query_string(endpoint)}' \\",
        "  -H 'Content-Type: application/json'",
    ]
    if _authorized(endpoint):
        lines[-1] += " \\"
        lines.append("  -H 'Authorization: Bearer YOUR_TOKEN'")
    if has_body:
        lines[-1] += " \\"
        lines.append(f"  -d '{json.dumps(_body(endpoint))}'")
    return "\n".join(lines)


def render_sdk_snippets(endpoint: Endpoint, base_url: str = "https://api.example.com") -> Dict[str, str]:
    base_url = base_url.rstrip("/")
    return {
        "typescript": typescript_snippet(endpoint, base_url),
        "javascript": javascript_snippet(endpoint, base_url),
        "python": python_snippet(endpoint, base_url),
        "curl": curl_snippet(endpoint, base_url),
    }
