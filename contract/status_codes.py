#!/usr/bin/env python3
"""
Status Code Analyzer
=====================
Detects status codes used in handler code and provides standard descriptions.

Combines:
- Code analysis (explicit status codes in the context window)
- Standard HTTP status code definitions (RFC 7231)
"""

import re
import logging
from typing import Dict, Any, List, Set

logger = logging.getLogger("endpoint_scanner.contract.status_codes")


class StatusCodeAnalyzer:
    """
    Analyze status codes used in handler code.

    Extracts:
    - Explicit status codes (return ..., 201 / status_code=404)
    - HTTP exception status codes (raise HTTPException(status_code=404))
    - Status code constants (HTTP_200_OK, HttpStatus.CREATED, http.StatusNotFound)
    """

    # Standard HTTP status codes (RFC 7231 + common extensions)
    STANDARD_CODES = {
        # 1xx Informational
        100: {"description": "Continue", "category": "informational"},
        101: {"description": "Switching Protocols", "category": "informational"},

        # 2xx Success
        200: {"description": "OK", "category": "success"},
        201: {"description": "Created", "category": "success"},
        202: {"description": "Accepted", "category": "success"},
        204: {"description": "No Content", "category": "success"},
        206: {"description": "Partial Content", "category": "success"},

        # 3xx Redirection
        301: {"description": "Moved Permanently", "category": "redirection"},
        302: {"description": "Found", "category": "redirection"},
        304: {"description": "Not Modified", "category": "redirection"},

        # 4xx Client Errors
        400: {"description": "Bad Request", "category": "client_error"},
        401: {"description": "Unauthorized", "category": "client_error"},
        403: {"description": "Forbidden", "category": "client_error"},
        404: {"description": "Not Found", "category": "client_error"},
        405: {"description": "Method Not Allowed", "category": "client_error"},
        406: {"description": "Not Acceptable", "category": "client_error"},
        409: {"description": "Conflict", "category": "client_error"},
        410: {"description": "Gone", "category": "client_error"},
        422: {"description": "Unprocessable Entity", "category": "client_error"},
        429: {"description": "Too Many Requests", "category": "client_error"},

        # 5xx Server Errors
        500: {"description": "Internal Server Error", "category": "server_error"},
        501: {"description": "Not Implemented", "category": "server_error"},
        502: {"description": "Bad Gateway", "category": "server_error"},
        503: {"description": "Service Unavailable", "category": "server_error"},
        504: {"description": "Gateway Timeout", "category": "server_error"},
    }

    # Named constants across frameworks (Spring HttpStatus, Go net/http, ASP.NET StatusCodes)
    NAMED_CONSTANTS = {
        "CREATED": 201,
        "ACCEPTED": 202,
        "NO_CONTENT": 204,
        "BAD_REQUEST": 400,
        "UNAUTHORIZED": 401,
        "FORBIDDEN": 403,
        "NOT_FOUND": 404,
        "CONFLICT": 409,
        "UNPROCESSABLE_ENTITY": 422,
        "INTERNAL_SERVER_ERROR": 500,
    }

    GO_CONSTANTS = {
        "StatusOK": 200,
        "StatusCreated": 201,
        "StatusAccepted": 202,
        "StatusNoContent": 204,
        "StatusBadRequest": 400,
        "StatusUnauthorized": 401,
        "StatusForbidden": 403,
        "StatusNotFound": 404,
        "StatusConflict": 409,
        "StatusUnprocessableEntity": 422,
        "StatusInternalServerError": 500,
    }

    @staticmethod
    def extract_from_code(code: str) -> Set[int]:
        """
        Extract explicit status codes from handler code.

        Detects patterns:
        - return ..., 200
        - raise HTTPException(status_code=404)
        - status_code=400 / status: 400 / .status(400)
        - HTTP_200_OK
        - HttpStatus.CREATED, http.StatusNotFound
        - Response(status=201)

        Args:
            code: Source code string

        Returns:
            Set of status code integers
        """
        codes = set()

        # Pattern 1: status_code=NNN
        for match in re.finditer(r'status_code\s*=\s*(\d{3})', code, re.IGNORECASE):
            codes.add(int(match.group(1)))

        # Pattern 2: return ..., NNN (Flask)
        for match in re.finditer(r'return\s+[^,\n]+,\s*(\d{3})\b', code):
            codes.add(int(match.group(1)))

        # Pattern 3: Response(status=NNN)
        for match in re.finditer(r'Response\s*\([^)]*status\s*=\s*(\d{3})', code, re.IGNORECASE):
            codes.add(int(match.group(1)))

        # Pattern 4: HTTP_NNN_XXX constants (e.g., HTTP_200_OK, HTTP_404_NOT_FOUND)
        for match in re.finditer(r'HTTP_(\d{3})_\w+', code):
            codes.add(int(match.group(1)))

        # Pattern 5: HttpStatus.X / HttpStatusCode.X / Response.Status.X
        for match in re.finditer(r'(?:HttpStatus|Status)\.([A-Z_]+)\b', code):
            if match.group(1) in StatusCodeAnalyzer.NAMED_CONSTANTS:
                codes.add(StatusCodeAnalyzer.NAMED_CONSTANTS[match.group(1)])

        # Pattern 6: Go net/http constants
        for match in re.finditer(r'http\.(Status\w+)', code):
            if match.group(1) in StatusCodeAnalyzer.GO_CONSTANTS:
                codes.add(StatusCodeAnalyzer.GO_CONSTANTS[match.group(1)])

        # Pattern 7: Explicit numbers in raise statements
        for match in re.finditer(r'raise\s+\w*(?:HTTP)?Exception\s*\([^)]*?(\d{3})', code):
            codes.add(int(match.group(1)))

        # Pattern 8: JS status literals (status: 404, .status(404), abort(404))
        for match in re.finditer(r'(?:\bstatus\s*:\s*|\.status\s*\(\s*|\babort\s*\(\s*)(\d{3})\b', code):
            codes.add(int(match.group(1)))

        codes = {c for c in codes if 100 <= c < 600}
        if codes:
            logger.debug(f"Extracted {len(codes)} status codes from code: {sorted(codes)}")

        return codes

    @staticmethod
    def get_standard_description(code: int) -> Dict[str, Any]:
        """
        Get standard description for HTTP status code.

        Args:
            code: HTTP status code (e.g., 200, 404)

        Returns:
            Dictionary with description and category
        """
        if code in StatusCodeAnalyzer.STANDARD_CODES:
            return StatusCodeAnalyzer.STANDARD_CODES[code].copy()
        else:
            # Unknown code - provide generic description
            category = StatusCodeAnalyzer._infer_category(code)
            return {
                "description": f"HTTP {code}",
                "category": category
            }

    @staticmethod
    def _infer_category(code: int) -> str:
        """Infer category from status code range."""
        if 100 <= code < 200:
            return "informational"
        elif 200 <= code < 300:
            return "success"
        elif 300 <= code < 400:
            return "redirection"
        elif 400 <= code < 500:
            return "client_error"
        elif 500 <= code < 600:
            return "server_error"
        else:
            return "unknown"

    @staticmethod
    def default_codes_for_method(method: str) -> List[int]:
        """
        Conventional status codes for an HTTP method.

        Used by the usage hints, never to invent responses on an endpoint.
        """
        defaults = {
            "GET": [200, 400, 401, 403, 404, 500],
            "POST": [201, 400, 401, 403, 409, 422, 500],
            "PUT": [200, 400, 401, 403, 404, 409, 422, 500],
            "PATCH": [200, 400, 401, 403, 404, 422, 500],
            "DELETE": [204, 401, 403, 404, 500],
            "HEAD": [200, 401, 403, 404, 500],
            "OPTIONS": [200, 500],
        }
        return defaults.get(method.upper(), [200, 400, 500])


def describe(code: int) -> str:
    """Standard reason phrase for a status code ("HTTP 299" when unknown)."""
    return StatusCodeAnalyzer.get_standard_description(code)["description"]


def category(code: int) -> str:
    return StatusCodeAnalyzer.get_standard_description(code)["category"]
