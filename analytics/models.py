"""
Analytics Report Models
=======================
Per-endpoint reports produced by the analytics passes.

Every report has a neutral default so that a pass which fails for one
endpoint still leaves a well-formed record behind.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(Enum):
    """Security issue severity."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Latency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


SEVERITY_PENALTY: Dict[Severity, int] = {
    Severity.CRITICAL: 25,
    Severity.HIGH: 15,
    Severity.MEDIUM: 10,
    Severity.LOW: 5,
}


@dataclass
class ComplexityReport:
    score: int = 1
    factors: List[str] = field(default_factory=list)
    cyclomatic_approx: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SecurityIssue:
    severity: Severity
    message: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass
class SecurityReport:
    issues: List[SecurityIssue] = field(default_factory=list)
    has_auth: bool = False
    has_rate_limit: bool = False
    has_input_validation: bool = False
    has_sanitization: bool = False

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "has_auth": self.has_auth,
            "has_rate_limit": self.has_rate_limit,
            "has_input_validation": self.has_input_validation,
            "has_sanitization": self.has_sanitization,
        }


@dataclass
class DocumentationReport:
    score: int = 0
    has_description: bool = False
    has_param_docs: bool = False
    has_response_docs: bool = False
    has_examples: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PerformanceReport:
    has_caching: bool = False
    has_compression: bool = False
    has_pagination: bool = False
    estimated_latency: Latency = Latency.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_caching": self.has_caching,
            "has_compression": self.has_compression,
            "has_pagination": self.has_pagination,
            "estimated_latency": self.estimated_latency.value,
        }


@dataclass
class NamingReport:
    score: int = 100
    follows_restful: bool = False
    uses_kebab_case: bool = False
    uses_camel_case: bool = False
    uses_snake_case: bool = False
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConsistencyReport:
    response_format: str = "unknown"   # json | xml | html | mixed | unknown
    error_handling: str = "unknown"    # consistent | inconsistent | unknown
    versioning_style: str = "none"     # path | header | query | none

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SimilarEndpoint:
    method: str
    path: str
    score: int
    source_file: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SimilarityReport:
    similar_endpoints: List[SimilarEndpoint] = field(default_factory=list)
    potential_duplicate: bool = False

    @property
    def best_score(self) -> int:
        return self.similar_endpoints[0].score if self.similar_endpoints else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "similar_endpoints": [s.to_dict() for s in self.similar_endpoints],
            "potential_duplicate": self.potential_duplicate,
        }


@dataclass
class DependencyReport:
    calls_endpoints: List[str] = field(default_factory=list)
    called_by_endpoints: List[str] = field(default_factory=list)
    external_apis: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HealthScore:
    overall: int = 0
    security: int = 100
    documentation: int = 0
    performance: int = 70
    naming: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ChangeRiskReport:
    level: str = "low"
    breaking_change_risk: bool = False
    dependent_endpoints: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CoverageReport:
    """Test suites that appear to exercise the endpoint's source file."""
    has_unit_test: bool = False
    has_integration_test: bool = False
    has_e2e_test: bool = False
    test_file_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HeaderHint:
    name: str
    value: str
    description: str


@dataclass
class ErrorHint:
    code: int
    message: str
    solution: str


@dataclass
class UsageHints:
    recommended_headers: List[HeaderHint] = field(default_factory=list)
    common_errors: List[ErrorHint] = field(default_factory=list)
    best_practices: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AnalyticsBundle:
    """All analytics reports attached to one endpoint."""
    complexity: ComplexityReport = field(default_factory=ComplexityReport)
    security: SecurityReport = field(default_factory=SecurityReport)
    documentation: DocumentationReport = field(default_factory=DocumentationReport)
    performance: PerformanceReport = field(default_factory=PerformanceReport)
    naming: NamingReport = field(default_factory=NamingReport)
    consistency: ConsistencyReport = field(default_factory=ConsistencyReport)
    similarity: SimilarityReport = field(default_factory=SimilarityReport)
    dependencies: DependencyReport = field(default_factory=DependencyReport)
    health: HealthScore = field(default_factory=HealthScore)
    change_risk: ChangeRiskReport = field(default_factory=ChangeRiskReport)
    usage_hints: UsageHints = field(default_factory=UsageHints)
    test_coverage: CoverageReport = field(default_factory=CoverageReport)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity": self.complexity.to_dict(),
            "security": self.security.to_dict(),
            "documentation": self.documentation.to_dict(),
            "performance": self.performance.to_dict(),
            "naming": self.naming.to_dict(),
            "consistency": self.consistency.to_dict(),
            "similarity": self.similarity.to_dict(),
            "dependencies": self.dependencies.to_dict(),
            "health": self.health.to_dict(),
            "change_risk": self.change_risk.to_dict(),
            "usage_hints": self.usage_hints.to_dict(),
            "test_coverage": self.test_coverage.to_dict(),
        }
