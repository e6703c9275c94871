"""
Security Analyzer
=================
Flags missing controls on an endpoint and scans the handler body for a fixed
catalog of risky code patterns.

Contract checks (auth, rate limit, validation) use the mined Endpoint; code
checks run over the 3000 chars following the declaration.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from extractors.models import Endpoint

from .models import SecurityIssue, SecurityReport, Severity
from .text import forward

WINDOW = 3000
MUTATING = ("POST", "PUT", "PATCH", "DELETE")


@dataclass(frozen=True)
class CodeRule:
    """A risky pattern in handler source."""
    name: str
    severity: Severity
    pattern: re.Pattern
    message: str
    recommendation: str


CODE_RULES: List[CodeRule] = [
    CodeRule(
        name="sql-injection",
        severity=Severity.CRITICAL,
        pattern=re.compile(
            r'\$\{.*\}.*(?:SELECT|INSERT|UPDATE|DELETE)|`.*\$\{.*\}.*(?:FROM|WHERE|VALUES)`'
            r'|\.query\s*\(.*\+|\.raw\s*\(.*\+',
            re.IGNORECASE,
        ),
        message="Potential SQL injection vulnerability",
        recommendation="Use parameterized queries or an ORM",
    ),
    CodeRule(
        name="dynamic-code",
        severity=Severity.CRITICAL,
        pattern=re.compile(r'\beval\s*\(|new\s+Function\s*\('),
        message="Use of eval() or Function constructor",
        recommendation="Avoid dynamic code execution; use safer alternatives",
    ),
    CodeRule(
        name="hardcoded-secret",
        severity=Severity.CRITICAL,
        pattern=re.compile(
            r'password\s*[=:]\s*[\'"][^\'"]{4,}[\'"]|api[_-]?key\s*[=:]\s*[\'"][^\'"]{8,}[\'"]',
            re.IGNORECASE,
        ),
        message="Possible hardcoded secret detected",
        recommendation="Move secrets to environment variables",
    ),
    CodeRule(
        name="cors-wildcard",
        severity=Severity.MEDIUM,
        pattern=re.compile(r'[\'"]Access-Control-Allow-Origin[\'"].*[\'"]\*[\'"]|cors\s*\(\s*\)'),
        message="CORS allows all origins",
        recommendation="Restrict CORS to specific trusted origins",
    ),
    CodeRule(
        name="plain-http",
        severity=Severity.LOW,
        pattern=re.compile(r'http://(?!localhost|127\.0\.0\.1)'),
        message="HTTP URL detected (non-localhost)",
        recommendation="Use HTTPS for external connections",
    ),
    CodeRule(
        name="xss",
        severity=Severity.HIGH,
        pattern=re.compile(r'\.innerHTML\s*=|dangerouslySetInnerHTML'),
        message="Potential XSS vulnerability",
        recommendation="Sanitize user input before rendering",
    ),
]

INPUT_VALIDATION = re.compile(
    r'\.parse\(|\.validate\(|\.safeParse\(|@IsString|@IsNumber|@Valid|validator\.',
    re.IGNORECASE,
)
SANITIZATION = re.compile(r'sanitize|escape|encode|DOMPurify|xss', re.IGNORECASE)


def analyze_security(endpoint: Endpoint, content: str, upper: Optional[int] = None) -> SecurityReport:
    window = forward(content, endpoint.offset, WINDOW, upper)
    report = SecurityReport(
        has_auth=endpoint.auth != "none",
        has_rate_limit=endpoint.rate_limit is not None,
        has_input_validation=endpoint.validation is not None or bool(INPUT_VALIDATION.search(window)),
        has_sanitization=bool(SANITIZATION.search(window)),
    )

    if not report.has_auth and endpoint.method in MUTATING:
        report.issues.append(SecurityIssue(
            Severity.HIGH,
            "Mutation endpoint without authentication",
            "Add authentication middleware to protect this endpoint",
        ))

    if not report.has_rate_limit and endpoint.method == "POST":
        report.issues.append(SecurityIssue(
            Severity.MEDIUM,
            "POST endpoint without rate limiting",
            "Add rate limiting to prevent abuse",
        ))

    if endpoint.request_body is not None and not report.has_input_validation:
        report.issues.append(SecurityIssue(
            Severity.MEDIUM,
            "Request body without validation",
            "Add schema validation using Zod, Joi, or class-validator",
        ))

    for rule in CODE_RULES:
        if rule.pattern.search(window):
            report.issues.append(SecurityIssue(rule.severity, rule.message, rule.recommendation))

    return report
