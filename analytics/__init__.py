"""
Per-endpoint analytics passes and scan statistics.
"""

from .change_risk import analyze_change_risk
from .complexity import analyze_complexity
from .consistency import analyze_consistency
from .coverage import SuiteIndex, analyze_coverage, tested_module
from .dependencies import analyze_dependencies, link_dependencies
from .documentation import analyze_documentation
from .health import calculate_health
from .models import (
    AnalyticsBundle,
    ChangeRiskReport,
    ComplexityReport,
    ConsistencyReport,
    CoverageReport,
    DependencyReport,
    DocumentationReport,
    ErrorHint,
    HeaderHint,
    HealthScore,
    Latency,
    NamingReport,
    PerformanceReport,
    SecurityIssue,
    SecurityReport,
    Severity,
    SimilarEndpoint,
    SimilarityReport,
    UsageHints,
)
from .naming import analyze_naming
from .performance import analyze_performance
from .pipeline import AnalyticsPipeline
from .security import analyze_security
from .similarity import detect_similar, similarity_score
from .stats import build_stats
from .usage_hints import generate_usage_hints

__all__ = [
    # Pipeline
    "AnalyticsPipeline",
    "build_stats",
    # Passes
    "analyze_change_risk",
    "analyze_complexity",
    "analyze_consistency",
    "analyze_coverage",
    "analyze_dependencies",
    "analyze_documentation",
    "analyze_naming",
    "analyze_performance",
    "analyze_security",
    "calculate_health",
    "detect_similar",
    "generate_usage_hints",
    "link_dependencies",
    "similarity_score",
    "tested_module",
    "SuiteIndex",
    # Reports
    "AnalyticsBundle",
    "ChangeRiskReport",
    "ComplexityReport",
    "ConsistencyReport",
    "CoverageReport",
    "DependencyReport",
    "DocumentationReport",
    "ErrorHint",
    "HeaderHint",
    "HealthScore",
    "Latency",
    "NamingReport",
    "PerformanceReport",
    "SecurityIssue",
    "SecurityReport",
    "Severity",
    "SimilarEndpoint",
    "SimilarityReport",
    "UsageHints",
]
