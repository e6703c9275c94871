"""Response format, error-handling style and versioning style of a handler."""

import re
from typing import Optional

from extractors.models import Endpoint

from .models import ConsistencyReport
from .text import forward

WINDOW = 2000

FORMATS = (
    ("json", re.compile(r'\.json\(|NextResponse\.json|JSONResponse|jsonify|application/json|res\.json|@ResponseBody', re.IGNORECASE)),
    ("xml", re.compile(r'\.xml\(|application/xml|text/xml', re.IGNORECASE)),
    ("html", re.compile(r'\.html\(|text/html|render\(|render_template', re.IGNORECASE)),
)
TRY_CATCH = re.compile(r'\btry\b[\s\S]*?\b(?:catch|except|rescue)\b')
ERROR_MIDDLEWARE = re.compile(r'errorHandler|handleError|catchAsync|asyncHandler', re.IGNORECASE)
CUSTOM_ERROR = re.compile(r'throw new \w+(?:Error|Exception)|raise \w+(?:Error|Exception)|HTTPException', re.IGNORECASE)
PATH_VERSION = re.compile(r'/v\d+(?:/|$)', re.IGNORECASE)
HEADER_VERSION = re.compile(r'Accept-Version|X-API-Version|api-version', re.IGNORECASE)
QUERY_VERSION = re.compile(r'\?.*version=|apiVersion=', re.IGNORECASE)


def classify_format(window: str) -> str:
    found = [name for name, pattern in FORMATS if pattern.search(window)]
    if not found:
        return "unknown"
    if len(found) > 1:
        return "mixed"
    return found[0]


def analyze_consistency(endpoint: Endpoint, content: str, upper: Optional[int] = None) -> ConsistencyReport:
    window = forward(content, endpoint.offset, WINDOW, upper)

    has_try = bool(TRY_CATCH.search(window))
    structured = bool(ERROR_MIDDLEWARE.search(window) or CUSTOM_ERROR.search(window))
    if has_try and structured:
        error_handling = "consistent"
    elif has_try:
        error_handling = "inconsistent"
    else:
        error_handling = "unknown"

    if PATH_VERSION.search(endpoint.path):
        versioning = "path"
    elif HEADER_VERSION.search(window):
        versioning = "header"
    elif QUERY_VERSION.search(window):
        versioning = "query"
    else:
        versioning = "none"

    return ConsistencyReport(
        response_format=classify_format(window),
        error_handling=error_handling,
        versioning_style=versioning,
    )
