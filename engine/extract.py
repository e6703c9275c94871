"""
Endpoint Scanner
================
The extraction entry point: detect the framework, walk the tree, run the
matching extractors over every file, mine contracts, canonicalize, group
and analyze.

    result = extract("/path/to/project")
    for endpoint in result.endpoints:
        print(endpoint.method, endpoint.path)

extract() never raises: a missing root, an unreadable tree or an unexpected
failure all yield an empty, well-formed result.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Tuple

from analytics import AnalyticsPipeline, build_stats
from cache import ContentCache
from contract import ContractMiner
from extractors.base import BaseExtractor, RawMatch
from extractors.models import Endpoint, Group
from extractors.python import route_api_views
from extractors.registry import ExtractorRegistry, accept_any

from .canonical import canonicalize, group_endpoints
from .config import ScannerConfig
from .detector import UNKNOWN, detect_framework
from .walker import SourceWalker, ignore_dirs_for

logger = logging.getLogger("endpoint_scanner.engine.extract")

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class ExtractionResult:
    endpoints: List[Endpoint] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    framework: str = UNKNOWN
    root: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoints": [e.to_dict() for e in self.endpoints],
            "groups": [g.to_dict() for g in self.groups],
            "stats": self.stats,
            "framework": self.framework,
            "root": self.root,
        }


def neighbour_bounds(offsets: List[int], offset: int) -> Tuple[int, Optional[int]]:
    """(previous distinct offset or 0, next distinct offset or None) around offset."""
    lower = max((o for o in offsets if o < offset), default=0)
    upper = min((o for o in offsets if o > offset), default=None)
    return lower, upper


class EndpointScanner:
    """
    Scan orchestrator for one project root.

    Features:
    - Sequential or thread-pool extraction (parallel_workers > 1)
    - Deterministic outcome: raw matches are ordered by (file, offset)
      before mining and canonicalization, whatever the completion order
    - Error isolation per file
    - Progress reporting
    """

    def __init__(self, root: str, config: Optional[ScannerConfig] = None):
        self.root = os.path.abspath(root) if root else ""
        self.config = config or ScannerConfig()
        self.registry = ExtractorRegistry(include_protocols=self.config.include_protocols)
        self.miner = ContractMiner()
        self.framework = UNKNOWN
        self.endpoints: List[Endpoint] = []
        self.walker: Optional[SourceWalker] = None
        self.elapsed_ms = 0
        self.stats: Dict[str, Any] = {"raw_matches": 0, "duplicates_dropped": 0}
        self._lock = Lock()

    # ===================== FILE PHASE =====================

    def _build_walker(self, extractors: List[BaseExtractor]) -> SourceWalker:
        deadline = time.monotonic() + self.config.timeout_seconds if self.config.timeout_seconds else None
        return SourceWalker(
            self.root,
            accept=accept_any(extractors),
            ignore_dirs=ignore_dirs_for(self.framework, self.config.ignore_dirs),
            max_depth=self.config.max_depth,
            cache=ContentCache(self.config.cache_capacity, self.config.cache_evict_batch),
            max_files=self.config.max_files,
            max_file_size_mb=self.config.max_file_size_mb,
            deadline=deadline,
        )

    def _scan_single_file(self, rel: str, extractors: List[BaseExtractor]) -> Tuple[Optional[str], List[RawMatch]]:
        """Read one file and run every accepting extractor over it, with error isolation."""
        if self.walker.expired():
            return None, []
        content = self.walker.read(rel)
        if content is None:
            return None, []

        matches: List[RawMatch] = []
        for extractor in extractors:
            if not extractor.accepts(rel):
                continue
            try:
                matches.extend(extractor.scan(content, rel))
            except Exception as e:
                logger.error(f"Unexpected error in {type(extractor).__name__} on {rel}: {e}")
                with self._lock:
                    self.walker.stats["files_errored"] += 1
        return content, matches

    def _scan_files(self, files: List[str], extractors: List[BaseExtractor],
                    progress_cb: Optional[ProgressCallback]) -> Tuple[List[RawMatch], Dict[str, str]]:
        raw: List[RawMatch] = []
        contents: Dict[str, str] = {}

        def collect(rel: str, content: Optional[str], found: List[RawMatch]):
            if found and content is not None:
                raw.extend(found)
                contents[rel] = content

        if self.config.parallel_workers > 1:
            logger.info(f"Starting parallel scan with {self.config.parallel_workers} workers")
            completed = 0
            with ThreadPoolExecutor(max_workers=self.config.parallel_workers) as executor:
                future_to_file = {executor.submit(self._scan_single_file, rel, extractors): rel for rel in files}
                for future in as_completed(future_to_file):
                    rel = future_to_file[future]
                    completed += 1
                    if progress_cb:
                        progress_cb(completed, len(files), rel)
                    try:
                        content, found = future.result()
                    except Exception as e:
                        logger.error(f"Task error for {rel}: {e}")
                        with self._lock:
                            self.walker.stats["files_errored"] += 1
                        continue
                    collect(rel, content, found)
        else:
            for i, rel in enumerate(files):
                if progress_cb:
                    progress_cb(i + 1, len(files), rel)
                content, found = self._scan_single_file(rel, extractors)
                collect(rel, content, found)

        if self.walker.expired():
            self.walker.stats["truncated"] = True
            logger.warning(f"Scan of {self.root} hit the {self.config.timeout_seconds}s timeout")

        raw.sort(key=lambda m: m.sort_key)
        return route_api_views(raw), contents

    # ===================== MINING =====================

    def _mine(self, raw: List[RawMatch], contents: Dict[str, str]) -> List[Endpoint]:
        by_file: Dict[str, List[RawMatch]] = {}
        for match in raw:
            by_file.setdefault(match.source_file, []).append(match)

        endpoints: List[Endpoint] = []
        for rel, matches in by_file.items():
            content = contents[rel]
            offsets = sorted({m.offset for m in matches})
            try:
                for match in matches:
                    lower, upper = neighbour_bounds(offsets, match.offset)
                    endpoints.append(self.miner.mine(match, content, lower, upper))
            except Exception as e:
                logger.error(f"Unexpected error mining {rel}: {e}")
                self.walker.stats["files_errored"] += 1
        return endpoints

    # ===================== PIPELINE =====================

    def scan(self, progress_cb: Optional[ProgressCallback] = None) -> List[Endpoint]:
        """Run the whole pipeline and return the canonical, analyzed endpoints."""
        started = time.monotonic()
        self.endpoints = []

        if not self.root or not os.path.isdir(self.root):
            logger.warning(f"Scan root {self.root or '<empty>'} is not a directory")
            return self.endpoints

        self.framework = detect_framework(self.root)
        extractors = self.registry.for_framework(self.framework)
        if self.registry.is_fallback(self.framework):
            logger.info(f"No dedicated extractors for '{self.framework}', running all of them")

        self.walker = self._build_walker(extractors)
        files = self.walker.collect_files()
        logger.info(f"Scanning {len(files)} files in {self.root}")

        raw, contents = self._scan_files(files, extractors, progress_cb)
        self.stats["raw_matches"] = len(raw)

        mined = self._mine(raw, contents)
        self.endpoints = canonicalize(mined, merge=self.config.merge_duplicates)
        self.stats["duplicates_dropped"] = len(mined) - len(self.endpoints)

        AnalyticsPipeline.from_config(self.config).run(self.endpoints, contents, self.root)

        self.elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"Scan complete: {len(self.endpoints)} endpoints from {self.walker.stats['files_scanned']} files "
                    f"in {self.elapsed_ms}ms")
        return self.endpoints

    def result(self) -> ExtractionResult:
        return ExtractionResult(
            endpoints=self.endpoints,
            groups=group_endpoints(self.endpoints),
            stats=build_stats(self.endpoints, self.elapsed_ms),
            framework=self.framework,
            root=self.root,
        )

    def summary(self) -> Dict[str, Any]:
        """File-phase counters for the CLI summary panel."""
        walker_stats = self.walker.stats if self.walker else {}
        cache_stats = self.walker.cache.get_stats() if self.walker else {}
        return {
            "root": self.root,
            "framework": self.framework,
            "total": len(self.endpoints),
            "files_scanned": walker_stats.get("files_scanned", 0),
            "files_skipped": walker_stats.get("files_skipped", 0),
            "files_errored": walker_stats.get("files_errored", 0),
            "truncated": walker_stats.get("truncated", False),
            "raw_matches": self.stats["raw_matches"],
            "duplicates_dropped": self.stats["duplicates_dropped"],
            "cache_hit_rate": cache_stats.get("hit_rate", 0.0),
            "elapsed_ms": self.elapsed_ms,
        }


def extract(project_root: str, config: Optional[ScannerConfig] = None,
            progress_cb: Optional[ProgressCallback] = None) -> ExtractionResult:
    """Extract and analyze every endpoint under project_root. Never raises."""
    scanner = EndpointScanner(project_root, config)
    try:
        scanner.scan(progress_cb)
        return scanner.result()
    except Exception as e:
        logger.error(f"Extraction of {project_root} failed: {e}")
        return ExtractionResult(stats=build_stats([]), root=scanner.root)
