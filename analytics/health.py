"""
Health Score
============
Weighted blend of security, documentation, performance and naming, each
normalized to 0-100 first.
"""

from typing import Dict, Optional

from extractors.models import Endpoint

from .models import SEVERITY_PENALTY, AnalyticsBundle, HealthScore, Latency

MUTATING = ("POST", "PUT", "PATCH", "DELETE")

DEFAULT_HEALTH_WEIGHTS: Dict[str, float] = {
    "security": 0.35,
    "documentation": 0.25,
    "performance": 0.20,
    "naming": 0.20,
}


def _clamp(value: int) -> int:
    return min(100, max(0, value))


def security_score(endpoint: Endpoint, bundle: AnalyticsBundle) -> int:
    report = bundle.security
    score = 100
    if not report.has_auth and endpoint.method in MUTATING:
        score -= 30
    if not report.has_input_validation and endpoint.request_body is not None:
        score -= 20
    if not report.has_rate_limit and endpoint.method == "POST":
        score -= 10
    for issue in report.issues:
        score -= SEVERITY_PENALTY[issue.severity]
    return max(0, score)


def performance_score(bundle: AnalyticsBundle) -> int:
    report = bundle.performance
    score = 70
    if report.has_caching:
        score += 10
    if report.has_pagination:
        score += 10
    if report.estimated_latency == Latency.LOW:
        score += 10
    elif report.estimated_latency == Latency.HIGH:
        score -= 20
    return _clamp(score)


def calculate_health(endpoint: Endpoint, weights: Optional[Dict[str, float]] = None) -> HealthScore:
    """Health of an endpoint whose other analytics reports are already attached."""
    bundle = endpoint.analytics or AnalyticsBundle()
    weights = weights or DEFAULT_HEALTH_WEIGHTS

    health = HealthScore(
        security=security_score(endpoint, bundle),
        documentation=_clamp(bundle.documentation.score),
        performance=performance_score(bundle),
        naming=_clamp(bundle.naming.score),
    )
    health.overall = round(
        health.security * weights["security"]
        + health.documentation * weights["documentation"]
        + health.performance * weights["performance"]
        + health.naming * weights["naming"]
    )
    return health
