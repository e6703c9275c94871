"""
Similar Endpoint Detection
==========================
Scores every other endpoint against this one:

    score = round(100 * (0.5 * jaccard + 0.3 * same_method + 0.2 * param_ratio))

jaccard is computed over lower-cased path segments where every parameter
segment is the single token "{}", so /users and /users/{id} share one of two
tokens. param_ratio = min(n, m) / max(n, m, 1).
"""

from typing import List, Set

from extractors.models import Endpoint
from extractors.paths import is_param_segment

from .models import SimilarEndpoint, SimilarityReport

PARAM_TOKEN = "{}"
TOP_N = 3


def path_tokens(path: str) -> Set[str]:
    return {
        PARAM_TOKEN if is_param_segment(s) or s.startswith(":") else s.lower()
        for s in path.split("/") if s
    }


def jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def similarity_score(endpoint: Endpoint, other: Endpoint) -> int:
    path_similarity = jaccard(path_tokens(endpoint.path), path_tokens(other.path))
    method_similarity = 0.3 if endpoint.method == other.method else 0.0
    n, m = len(endpoint.parameters), len(other.parameters)
    param_similarity = min(n, m) / max(n, m, 1) * 0.2
    return round((path_similarity * 0.5 + method_similarity + param_similarity) * 100)


def detect_similar(endpoint: Endpoint, endpoints: List[Endpoint],
                   threshold: int = 50, duplicate_threshold: int = 80) -> SimilarityReport:
    matches = []
    for other in endpoints:
        if other is endpoint:
            continue
        score = similarity_score(endpoint, other)
        if score >= threshold:
            matches.append(SimilarEndpoint(
                method=other.method, path=other.path, score=score, source_file=other.source_file,
            ))

    matches.sort(key=lambda m: -m.score)
    top = matches[:TOP_N]
    return SimilarityReport(
        similar_endpoints=top,
        potential_duplicate=bool(top) and top[0].score >= duplicate_threshold,
    )
