"""Client-facing hints: headers to send, errors to expect, calling practices."""

from extractors.models import Endpoint
from extractors.paths import path_param_names

from contract.status_codes import StatusCodeAnalyzer, describe

from .models import ErrorHint, HeaderHint, UsageHints

WRITES = ("POST", "PUT", "PATCH")

AUTH_HEADERS = {
    "bearer": HeaderHint("Authorization", "Bearer <your_token>", "Token authentication is required"),
    "jwt": HeaderHint("Authorization", "Bearer <your_token>", "JWT authentication is required"),
    "oauth": HeaderHint("Authorization", "Bearer <access_token>", "An OAuth access token is required"),
    "apikey": HeaderHint("X-API-Key", "<your_api_key>", "API key authentication is required"),
    "basic": HeaderHint("Authorization", "Basic <base64 credentials>", "HTTP basic authentication is required"),
    "session": HeaderHint("Cookie", "session=<session_id>", "An authenticated session cookie is required"),
}

ERROR_SOLUTIONS = {
    400: "Check the request body format and required fields",
    401: "Include a valid authentication token or key",
    403: "Make sure the caller has permission for this resource",
    404: "Make sure a resource with this identifier exists",
    409: "The resource already exists or was modified concurrently; refetch and retry",
    422: "Check that the input values pass validation",
}


def _expected_errors(endpoint: Endpoint):
    authenticated = endpoint.auth != "none"
    if authenticated:
        yield 401
        yield 403
    if endpoint.method in WRITES:
        yield 400
        yield 422
    if path_param_names(endpoint.path):
        yield 404
    if 409 in StatusCodeAnalyzer.default_codes_for_method(endpoint.method):
        yield 409


def generate_usage_hints(endpoint: Endpoint) -> UsageHints:
    hints = UsageHints()

    content_type = endpoint.request_body.content_type if endpoint.request_body else "application/json"
    hints.recommended_headers.append(HeaderHint("Content-Type", content_type, "Request payload format"))
    if endpoint.auth in AUTH_HEADERS:
        hints.recommended_headers.append(AUTH_HEADERS[endpoint.auth])

    seen = set()
    for code in _expected_errors(endpoint):
        seen.add(code)
        hints.common_errors.append(ErrorHint(code, describe(code), ERROR_SOLUTIONS[code]))
    for response in endpoint.responses:
        if response.status_code >= 400 and response.status_code not in seen:
            seen.add(response.status_code)
            hints.common_errors.append(ErrorHint(
                response.status_code,
                response.description or describe(response.status_code),
                ERROR_SOLUTIONS.get(response.status_code, "Returned explicitly by the handler"),
            ))

    if endpoint.method == "GET":
        hints.best_practices.append("Use cache headers to avoid refetching unchanged data")
        if endpoint.analytics is not None and endpoint.analytics.performance.has_pagination:
            hints.best_practices.append("Page through large result sets instead of fetching everything")
    if endpoint.method in WRITES:
        hints.best_practices.append("Validate input on the client before sending the request")
        hints.best_practices.append("Retry with backoff on network errors")
    if endpoint.rate_limit is not None:
        limit = endpoint.rate_limit.limit if endpoint.rate_limit.limit is not None else "?"
        window = endpoint.rate_limit.window or "window"
        hints.best_practices.append(f"Rate limit: {limit} requests per {window}; throttle your calls")
    if endpoint.deprecated:
        hints.best_practices.append("This endpoint is deprecated; migrate to its replacement")

    return hints
