"""
Change Risk
===========
How risky it is to change an endpoint's contract: parameter count,
complexity, how many other endpoints touch the same resource, whether it
takes a body, and whether the resource is business-critical.
"""

import re
from typing import List

from extractors.models import Endpoint

from .models import ChangeRiskReport
from .naming import literal_segments

MAX_DEPENDENTS = 5
CRITICAL_RESOURCE = re.compile(r'user|auth|payment|order|transaction', re.IGNORECASE)


def analyze_change_risk(endpoint: Endpoint, endpoints: List[Endpoint]) -> ChangeRiskReport:
    segments = literal_segments(endpoint.path)
    resource = segments[-1] if segments else ""

    dependents = []
    if resource:
        dependents = [
            other.label for other in endpoints
            if other is not endpoint and resource in other.path
        ][:MAX_DEPENDENTS]

    params = len(endpoint.parameters)
    complexity = endpoint.analytics.complexity.score if endpoint.analytics else 1

    risk = 0
    if params > 5:
        risk += 3
    elif params > 3:
        risk += 1

    if complexity > 7:
        risk += 3
    elif complexity > 4:
        risk += 1

    if len(dependents) > 3:
        risk += 2
    elif dependents:
        risk += 1

    if endpoint.request_body is not None:
        risk += 1
    if CRITICAL_RESOURCE.search(endpoint.path):
        risk += 2

    if risk >= 6:
        level = "high"
    elif risk >= 3:
        level = "medium"
    else:
        level = "low"

    return ChangeRiskReport(
        level=level,
        breaking_change_risk=(
            endpoint.method == "DELETE"
            or (endpoint.method == "PUT" and params > 2)
            or len(dependents) > 2
        ),
        dependent_endpoints=dependents,
    )
