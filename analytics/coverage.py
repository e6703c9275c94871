"""
Test Coverage Analyzer
======================
Whether the project's test suites appear to exercise an endpoint.

    unit          a test file named after the handler's source file
                  (users.test.ts, test_users.py, UserControllerTest.java,
                  users_test.go, users_spec.rb)
    integration   an `integration` directory below a test root
    e2e           an e2e / cypress / playwright directory at the project
                  root or below a test root, or *.e2e-spec.* files

The tree is indexed once per scan and every endpoint is answered from the
index. Nothing is executed.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from extractors.models import Endpoint

from .models import CoverageReport

logger = logging.getLogger("endpoint_scanner.analytics.coverage")

TEST_ROOTS = {"__tests__", "tests", "test", "spec", "specs"}
E2E_DIRS = {"e2e", "cypress", "playwright"}
SKIP_DIRS = {
    ".git", ".next", ".venv", "venv", "node_modules", "vendor", "target",
    "dist", "build", "__pycache__", ".pytest_cache",
}

_TEST_FILE_NAMES = [
    re.compile(r'^test_(\w+)\.py$'),
    re.compile(r'^(\w+)_test\.(?:py|go|exs)$'),
    re.compile(r'^(\w+)_spec\.rb$'),
    re.compile(r'^([\w.-]+?)\.(?:test|spec)\.[cm]?[jt]sx?$'),
    re.compile(r'^(\w+?)Tests?\.(?:java|kt|cs|php)$'),
    re.compile(r'^Test(\w+)\.(?:java|kt)$'),
]
_E2E_FILE = re.compile(r'\.e2e(?:-spec|-test)?\.[cm]?[jt]sx?$')
_SOURCE_EXT = re.compile(r'\.(?:[cm]?[jt]sx?|py|java|kt|go|rb|php|rs|cs|exs?|dart)$')


def tested_module(filename: str) -> Optional[str]:
    """users.test.ts -> users, test_users.py -> users, UserControllerTest.java -> usercontroller"""
    for pattern in _TEST_FILE_NAMES:
        m = pattern.match(filename)
        if m:
            return m.group(1).lower()
    return None


def source_module(source_file: str) -> str:
    filename = source_file.replace("\\", "/").rsplit("/", 1)[-1]
    return _SOURCE_EXT.sub("", filename).lower()


@dataclass
class SuiteIndex:
    """Test files keyed by the lowercased module name they exercise."""
    unit: Dict[str, str] = field(default_factory=dict)
    has_integration: bool = False
    has_e2e: bool = False

    @classmethod
    def scan(cls, root: Optional[str], max_depth: int = 8) -> "SuiteIndex":
        index = cls()
        if not root or not os.path.isdir(root):
            return index

        root = os.path.abspath(root)
        for dirpath, dirnames, filenames in os.walk(root):
            rel_dir = os.path.relpath(dirpath, root)
            parts: List[str] = [] if rel_dir == "." else rel_dir.split(os.sep)
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and len(parts) < max_depth)

            name = parts[-1] if parts else ""
            below_test_root = any(p in TEST_ROOTS for p in parts[:-1])
            if name in E2E_DIRS and (len(parts) == 1 or below_test_root):
                index.has_e2e = True
            if name == "integration" and below_test_root:
                index.has_integration = True

            for filename in sorted(filenames):
                if _E2E_FILE.search(filename):
                    index.has_e2e = True
                    continue
                module = tested_module(filename)
                if module:
                    index.unit.setdefault(module, "/".join(parts + [filename]))

        logger.debug(f"Indexed {len(index.unit)} unit test files under {root}")
        return index


def analyze_coverage(endpoint: Endpoint, index: SuiteIndex) -> CoverageReport:
    test_file = index.unit.get(source_module(endpoint.source_file))
    return CoverageReport(
        has_unit_test=test_file is not None,
        has_integration_test=index.has_integration,
        has_e2e_test=index.has_e2e,
        test_file_path=test_file,
    )
