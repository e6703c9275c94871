"""
Complexity Analyzer
===================
Additive 1-10 complexity score for a handler.

Points come from the mined contract (parameters, body, auth, middleware)
and from pattern counts over the 3000 chars following the declaration
(database calls, outbound HTTP, error handling, branching, loops, async).
"""

import re
from typing import Optional

from extractors.models import Endpoint

from .models import ComplexityReport
from .text import count, forward

WINDOW = 3000
MAX_SCORE = 10

DB_CALL = re.compile(
    r'prisma\.|\.findMany|\.findUnique|\.create|\.update|\.delete|SELECT|INSERT|UPDATE|DELETE|mongoose\.|\.save\(\)',
    re.IGNORECASE,
)
EXTERNAL_CALL = re.compile(r'fetch\(|axios\.|http\.|https\.|request\(|\.ajax', re.IGNORECASE)
TRY_BLOCK = re.compile(r'try\s*\{')
BRANCH = re.compile(r'if\s*\(|else\s+if|switch\s*\(|\?\s*:')
LOOP = re.compile(r'for\s*\(|while\s*\(|\.forEach|\.map\(|\.reduce\(|\.filter\(')
ASYNC_OP = re.compile(r'await\s|Promise\.|\.then\(|\.catch\(')


def analyze_complexity(endpoint: Endpoint, content: str, upper: Optional[int] = None) -> ComplexityReport:
    window = forward(content, endpoint.offset, WINDOW, upper)
    score = 1
    factors = []

    def add(points: int, factor: str):
        nonlocal score
        score += points
        factors.append(factor)

    params = len(endpoint.parameters)
    if params > 5:
        add(2, "Many parameters")
    elif params > 2:
        add(1, "Multiple parameters")

    if endpoint.request_body is not None:
        add(1, "Has request body")
        if endpoint.request_body.content_type == "multipart/form-data":
            add(1, "File upload")

    if endpoint.auth != "none":
        add(1, "Requires authentication")

    if len(endpoint.middleware) > 3:
        add(2, "Many middlewares")
    elif endpoint.middleware:
        add(1, "Has middleware")

    db_calls = count(DB_CALL, window)
    if db_calls > 3:
        add(2, "Multiple DB operations")
    elif db_calls > 0:
        add(1, "Database access")

    if EXTERNAL_CALL.search(window):
        add(2, "External API calls")

    if count(TRY_BLOCK, window) > 2:
        add(1, "Complex error handling")

    branches = count(BRANCH, window)
    if branches > 10:
        add(2, "High branching")
    elif branches > 5:
        add(1, "Moderate branching")

    if count(LOOP, window) > 5:
        add(1, "Many iterations")

    if count(ASYNC_OP, window) > 5:
        add(1, "Complex async flow")

    return ComplexityReport(
        score=min(MAX_SCORE, score),
        factors=factors,
        cyclomatic_approx=branches + 1,
    )
