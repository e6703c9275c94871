"""
Documentation Scorer
====================
0-100 documentation score: description (+30), parameter docs (+25),
response docs (+25) and examples (+20).

Doc markers are looked for in the 500 chars before the declaration; mined
descriptions count as well. Path parameter descriptions and standard reason
phrases are derived from the route itself and are not counted as docs.
"""

import re

from contract.status_codes import describe
from extractors.models import Endpoint

from .models import DocumentationReport
from .text import backward

WINDOW = 500

DESCRIPTION = re.compile(r'/\*\*[\s\S]*?\*/|"""|\'\'\'|///\s*<summary>')
PARAM_DOCS = re.compile(r'@param\s|:param\s|Args:', re.IGNORECASE)
RESPONSE_DOCS = re.compile(r'@returns?|@response|Returns:|@ApiResponse', re.IGNORECASE)
EXAMPLES = re.compile(r'@example|Example:', re.IGNORECASE)


def analyze_documentation(endpoint: Endpoint, content: str) -> DocumentationReport:
    before = backward(content, endpoint.offset, WINDOW)
    report = DocumentationReport()

    report.has_description = bool(endpoint.description) or bool(DESCRIPTION.search(before))
    report.has_param_docs = bool(PARAM_DOCS.search(before)) or any(
        p.description for p in endpoint.parameters if p.location != "path"
    )
    report.has_response_docs = bool(RESPONSE_DOCS.search(before)) or any(
        r.description and r.description != describe(r.status_code) for r in endpoint.responses
    )
    report.has_examples = bool(EXAMPLES.search(before)) or bool(
        endpoint.request_body and endpoint.request_body.example is not None
    )

    report.score = (
        (30 if report.has_description else 0)
        + (25 if report.has_param_docs else 0)
        + (25 if report.has_response_docs else 0)
        + (20 if report.has_examples else 0)
    )
    return report
