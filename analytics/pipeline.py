"""
Analytics Pipeline
==================
Runs every analytics pass over the canonical endpoint set.

Per-endpoint passes run first, reverse dependency edges are linked, then the
passes that need the full set or other reports (similarity, health, change
risk, usage hints). Test coverage reads an index of the project's test
suites, built once from the scan root. Each pass is isolated per endpoint:
a failing pass keeps its default report.
"""

import bisect
import logging
from typing import Any, Callable, Dict, List, Optional

from extractors.models import Endpoint

from .change_risk import analyze_change_risk
from .complexity import analyze_complexity
from .coverage import SuiteIndex, analyze_coverage
from .consistency import analyze_consistency
from .dependencies import analyze_dependencies, link_dependencies
from .documentation import analyze_documentation
from .health import DEFAULT_HEALTH_WEIGHTS, calculate_health
from .models import AnalyticsBundle
from .naming import analyze_naming
from .performance import analyze_performance
from .security import analyze_security
from .similarity import detect_similar
from .usage_hints import generate_usage_hints

logger = logging.getLogger("endpoint_scanner.analytics.pipeline")


def handler_bounds(endpoints: List[Endpoint]) -> Dict[int, Optional[int]]:
    """Offset of the next declaration in the same file, keyed by id(endpoint)."""
    offsets: Dict[str, List[int]] = {}
    for ep in endpoints:
        offsets.setdefault(ep.source_file, []).append(ep.offset)
    for file_offsets in offsets.values():
        file_offsets[:] = sorted(set(file_offsets))

    bounds = {}
    for ep in endpoints:
        file_offsets = offsets[ep.source_file]
        i = bisect.bisect_right(file_offsets, ep.offset)
        bounds[id(ep)] = file_offsets[i] if i < len(file_offsets) else None
    return bounds


class AnalyticsPipeline:
    """Attaches an AnalyticsBundle to every endpoint."""

    def __init__(self, similarity_threshold: int = 50, duplicate_threshold: int = 80,
                 health_weights: Optional[Dict[str, float]] = None):
        self.similarity_threshold = similarity_threshold
        self.duplicate_threshold = duplicate_threshold
        self.health_weights = health_weights or dict(DEFAULT_HEALTH_WEIGHTS)
        self.failures = 0

    @classmethod
    def from_config(cls, config) -> "AnalyticsPipeline":
        return cls(config.similarity_threshold, config.duplicate_threshold, config.health_weights)

    def run(self, endpoints: List[Endpoint], contents: Dict[str, str], root: Optional[str] = None) -> List[Endpoint]:
        bounds = handler_bounds(endpoints)
        suites = SuiteIndex()
        if root and endpoints:
            try:
                suites = SuiteIndex.scan(root)
            except Exception as e:
                self.failures += 1
                logger.debug(f"Test suite indexing failed for {root}: {e}")

        for ep in endpoints:
            bundle = AnalyticsBundle()
            ep.analytics = bundle
            content = contents.get(ep.source_file, "")
            upper = bounds[id(ep)]

            bundle.complexity = self._run("complexity", ep, analyze_complexity, bundle.complexity, ep, content, upper)
            bundle.security = self._run("security", ep, analyze_security, bundle.security, ep, content, upper)
            bundle.documentation = self._run(
                "documentation", ep, analyze_documentation, bundle.documentation, ep, content,
            )
            bundle.performance = self._run(
                "performance", ep, analyze_performance, bundle.performance, ep, content, upper,
            )
            bundle.naming = self._run("naming", ep, analyze_naming, bundle.naming, ep)
            bundle.consistency = self._run(
                "consistency", ep, analyze_consistency, bundle.consistency, ep, content, upper,
            )
            bundle.dependencies = self._run(
                "dependencies", ep, analyze_dependencies, bundle.dependencies, ep, content, upper,
            )
            bundle.test_coverage = self._run(
                "test_coverage", ep, analyze_coverage, bundle.test_coverage, ep, suites,
            )

        try:
            link_dependencies(endpoints)
        except Exception as e:
            self.failures += 1
            logger.debug(f"Dependency linking failed: {e}")

        for ep in endpoints:
            bundle = ep.analytics
            bundle.similarity = self._run(
                "similarity", ep, detect_similar, bundle.similarity, ep, endpoints,
                self.similarity_threshold, self.duplicate_threshold,
            )
            bundle.health = self._run(
                "health", ep, calculate_health, bundle.health, ep, self.health_weights,
            )
            bundle.change_risk = self._run(
                "change_risk", ep, analyze_change_risk, bundle.change_risk, ep, endpoints,
            )
            bundle.usage_hints = self._run("usage_hints", ep, generate_usage_hints, bundle.usage_hints, ep)

        if self.failures:
            logger.debug(f"{self.failures} analytics passes fell back to defaults")
        return endpoints

    def _run(self, name: str, endpoint: Endpoint, func: Callable, default: Any, *args):
        try:
            return func(*args)
        except Exception as e:
            self.failures += 1
            logger.debug(f"Analytics pass '{name}' failed for {endpoint.id}: {e}")
            return default
