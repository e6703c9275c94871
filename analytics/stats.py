"""
Scan Statistics
===============
Roll-ups over the analyzed endpoint set: counts by method / framework /
auth, security, complexity, documentation, performance, health, naming,
consistency, similarity, dependency and test coverage summaries.
"""

from collections import Counter
from typing import Any, Dict, List

from extractors.models import Endpoint

from .models import AnalyticsBundle, Latency, Severity

TOP_COMPLEX = 5
LOWEST_HEALTH = 5
TOP_PAIRS = 10
MAX_HOSTNAMES = 20
MOST_CONNECTED = 5


def _ref(ep: Endpoint, score: int, key: str = "score") -> Dict[str, Any]:
    return {"method": ep.method, "path": ep.path, key: score}


def _average(values: List[int], digits: int = 0) -> float:
    if not values:
        return 0
    value = round(sum(values) / len(values), digits)
    return int(value) if digits == 0 else value


def build_stats(endpoints: List[Endpoint], elapsed_ms: int = 0) -> Dict[str, Any]:
    bundles = [(ep, ep.analytics or AnalyticsBundle()) for ep in endpoints]

    # ===================== COUNTS =====================
    types = Counter({"rest": 0, "graphql": 0, "websocket": 0, "grpc": 0})
    types.update(ep.kind for ep in endpoints)

    # ===================== SECURITY =====================
    severities = Counter({s.value: 0 for s in Severity})
    for _, b in bundles:
        severities.update(issue.severity.value for issue in b.security.issues)
    security = {
        "endpoints_with_auth": sum(1 for _, b in bundles if b.security.has_auth),
        "endpoints_without_auth": sum(1 for _, b in bundles if not b.security.has_auth),
        "endpoints_with_validation": sum(1 for _, b in bundles if b.security.has_input_validation),
        "endpoints_with_rate_limit": sum(1 for _, b in bundles if b.security.has_rate_limit),
        "total_security_issues": sum(severities.values()),
        "issues_by_severity": dict(severities),
    }

    # ===================== COMPLEXITY / DOCUMENTATION =====================
    complexity_scores = [b.complexity.score for _, b in bundles]
    most_complex = sorted(bundles, key=lambda pair: -pair[1].complexity.score)[:TOP_COMPLEX]
    complexity = {
        "average": _average(complexity_scores, 1),
        "distribution": {
            "low": sum(1 for s in complexity_scores if s <= 3),
            "medium": sum(1 for s in complexity_scores if 3 < s <= 6),
            "high": sum(1 for s in complexity_scores if s > 6),
        },
        "most_complex": [_ref(ep, b.complexity.score) for ep, b in most_complex],
    }

    doc_scores = [b.documentation.score for _, b in bundles]
    documentation = {
        "average_score": _average(doc_scores),
        "well_documented": sum(1 for s in doc_scores if s >= 70),
        "partially_documented": sum(1 for s in doc_scores if 30 <= s < 70),
        "undocumented": sum(1 for s in doc_scores if s < 30),
    }

    latencies = Counter(b.performance.estimated_latency for _, b in bundles)
    performance = {
        "with_caching": sum(1 for _, b in bundles if b.performance.has_caching),
        "with_pagination": sum(1 for _, b in bundles if b.performance.has_pagination),
        "high_latency": latencies[Latency.HIGH],
        "medium_latency": latencies[Latency.MEDIUM],
        "low_latency": latencies[Latency.LOW],
    }

    # ===================== HEALTH / NAMING / CONSISTENCY =====================
    health_scores = [b.health.overall for _, b in bundles]
    lowest = sorted(bundles, key=lambda pair: pair[1].health.overall)[:LOWEST_HEALTH]
    health = {
        "average": _average(health_scores),
        "distribution": {
            "excellent": sum(1 for s in health_scores if s >= 80),
            "good": sum(1 for s in health_scores if 60 <= s < 80),
            "fair": sum(1 for s in health_scores if 40 <= s < 60),
            "poor": sum(1 for s in health_scores if s < 40),
        },
        "lowest_scoring": [_ref(ep, b.health.overall) for ep, b in lowest],
    }

    common_issues = Counter()
    for _, b in bundles:
        common_issues.update(b.naming.issues)
    restful = sum(1 for _, b in bundles if b.naming.follows_restful)
    naming = {
        "restful_compliant": restful,
        "non_restful": len(bundles) - restful,
        "average_score": _average([b.naming.score for _, b in bundles]),
        "common_issues": dict(common_issues.most_common()),
    }

    error_handling = Counter({"consistent": 0, "inconsistent": 0, "unknown": 0})
    error_handling.update(b.consistency.error_handling for _, b in bundles)
    consistency = {
        "response_formats": dict(Counter(b.consistency.response_format for _, b in bundles)),
        "versioning_styles": dict(Counter(b.consistency.versioning_style for _, b in bundles)),
        "error_handling": dict(error_handling),
    }

    # ===================== SIMILARITY =====================
    pairs: Dict[frozenset, Dict[str, Any]] = {}
    for ep, b in bundles:
        for sim in b.similarity.similar_endpoints:
            other = f"{sim.method} {sim.path}"
            key = frozenset((ep.label, other))
            if key not in pairs:
                pairs[key] = {"endpoint1": ep.label, "endpoint2": other, "score": sim.score}
    similarity = {
        "potential_duplicates": sum(1 for _, b in bundles if b.similarity.potential_duplicate),
        "similar_pairs": sorted(pairs.values(), key=lambda p: -p["score"])[:TOP_PAIRS],
    }

    # ===================== TEST COVERAGE =====================
    unit_tested = sum(1 for _, b in bundles if b.test_coverage.has_unit_test)
    test_coverage = {
        "with_unit_tests": unit_tested,
        "without_unit_tests": len(bundles) - unit_tested,
        "with_integration_tests": sum(1 for _, b in bundles if b.test_coverage.has_integration_test),
        "with_e2e_tests": sum(1 for _, b in bundles if b.test_coverage.has_e2e_test),
        "unit_coverage_rate": round(unit_tested / len(bundles) * 100, 1) if bundles else 0,
    }

    # ===================== DEPENDENCIES =====================
    hostnames: List[str] = []
    for _, b in bundles:
        for host in b.dependencies.external_apis:
            if host not in hostnames:
                hostnames.append(host)
    connected = sorted(
        bundles,
        key=lambda pair: -(len(pair[1].dependencies.calls_endpoints) + len(pair[1].dependencies.called_by_endpoints)),
    )[:MOST_CONNECTED]
    dependencies = {
        "total_internal_calls": sum(len(b.dependencies.calls_endpoints) for _, b in bundles),
        "total_external_calls": sum(len(b.dependencies.external_apis) for _, b in bundles),
        "external_apis": hostnames[:MAX_HOSTNAMES],
        "most_connected": [
            _ref(ep, len(b.dependencies.calls_endpoints) + len(b.dependencies.called_by_endpoints), "connections")
            for ep, b in connected
        ],
    }

    return {
        "total": len(endpoints),
        "by_method": dict(Counter(ep.method for ep in endpoints)),
        "by_framework": dict(Counter(ep.framework for ep in endpoints)),
        "by_auth": dict(Counter(ep.auth for ep in endpoints)),
        "types": dict(types),
        "security": security,
        "complexity": complexity,
        "documentation": documentation,
        "performance": performance,
        "health": health,
        "naming": naming,
        "consistency": consistency,
        "similarity": similarity,
        "dependencies": dependencies,
        "test_coverage": test_coverage,
        "analysis_time_ms": elapsed_ms,
    }
