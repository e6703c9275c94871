"""Source tree walker: bounded depth-first traversal with per-ecosystem exclusions."""
from __future__ import annotations

import logging
import os
import time
from threading import Lock
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

from cache import ContentCache

from .detector import ECOSYSTEM_OF

logger = logging.getLogger("endpoint_scanner.engine.walker")

# =============================================================================
# IGNORE PATTERNS
# =============================================================================
COMMON_IGNORE_DIRS: Set[str] = {
    # Version control
    ".git", ".svn", ".hg", ".bzr",
    # IDE/OS
    ".idea", ".vscode", ".vs", ".DS_Store",
}

ECOSYSTEM_IGNORE_DIRS: Dict[str, Set[str]] = {
    "node": {"node_modules", "dist", "build", ".next", ".nuxt", "coverage", "__tests__", "test", ".turbo", ".cache"},
    "python": {"__pycache__", "venv", ".venv", "env", ".env", "node_modules", "migrations", "tests", "test",
               ".tox", ".mypy_cache", ".pytest_cache", "site-packages"},
    "jvm": {"target", "build", "out", "gradle", ".gradle"},
    "go": {"vendor", "testdata"},
    "ruby": {"vendor", "node_modules", "tmp", "log"},
    "php": {"vendor", "node_modules", "storage", "cache"},
    "dotnet": {"bin", "obj", "TestResults", "artifacts"},
    "rust": {"target"},
    "dart": {".dart_tool", "build"},
    "elixir": {"deps", "_build", "node_modules"},
}


def ignore_dirs_for(framework: str, extra: Optional[Set[str]] = None) -> Set[str]:
    """
    Directory blacklist for a framework tag.

    Unknown frameworks (fallback mode) get the union of every ecosystem set.
    """
    ecosystem = ECOSYSTEM_OF.get(framework)
    dirs = set(COMMON_IGNORE_DIRS)
    if ecosystem is None:
        for names in ECOSYSTEM_IGNORE_DIRS.values():
            dirs |= names
    else:
        dirs |= ECOSYSTEM_IGNORE_DIRS.get(ecosystem, set())
    if extra:
        dirs |= set(extra)
    return dirs


class SourceWalker:
    """
    Depth-first walker over a project tree.

    Features:
    - Deterministic order (entries sorted by name)
    - Depth cap (directories down to level max_depth are read, the root
      being level 0), file-count ceiling and wall-clock deadline
    - Reads through a (path, mtime) ContentCache owned by the walker
    - Unreadable directories and files are skipped, never raised
    """

    def __init__(
        self,
        root: str,
        accept: Callable[[str], bool],
        ignore_dirs: Set[str],
        max_depth: int = 8,
        cache: Optional[ContentCache] = None,
        max_files: int = 20000,
        max_file_size_mb: int = 2,
        deadline: Optional[float] = None,
    ):
        self.root = os.path.abspath(root)
        self.accept = accept
        self.ignore_dirs = ignore_dirs
        self.max_depth = max_depth
        self.cache = cache if cache is not None else ContentCache()
        self.max_files = max_files
        self.max_bytes = max_file_size_mb * 1024 * 1024
        self.deadline = deadline
        self.stats = {
            "files_scanned": 0,
            "files_skipped": 0,
            "files_errored": 0,
            "dirs_errored": 0,
            "truncated": False,
        }
        self._lock = Lock()

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() > self.deadline

    def _truncate(self, reason: str):
        if not self.stats["truncated"]:
            logger.warning(f"Scan of {self.root} truncated: {reason}")
        self.stats["truncated"] = True

    def collect_files(self) -> List[str]:
        """Return the qualifying files as root-relative POSIX paths in walk order."""
        files: List[str] = []
        if not os.path.isdir(self.root):
            return files
        self._visit(self.root, 0, files)
        return files

    def _visit(self, directory: str, depth: int, files: List[str]):
        if depth > self.max_depth:
            return
        if self.expired():
            self._truncate("timeout exceeded")
            return

        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"Cannot list {directory}: {e}")
            self.stats["dirs_errored"] += 1
            return

        for entry in entries:
            if len(files) >= self.max_files:
                self._truncate(f"file limit of {self.max_files} reached")
                return
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name in self.ignore_dirs:
                        continue
                    self._visit(entry.path, depth + 1, files)
                elif entry.is_file():
                    rel = os.path.relpath(entry.path, self.root).replace(os.sep, "/")
                    if self.accept(rel):
                        files.append(rel)
                    else:
                        self.stats["files_skipped"] += 1
            except OSError as e:
                logger.debug(f"Cannot stat {entry.path}: {e}")
                self.stats["files_errored"] += 1

    def read(self, rel_path: str) -> Optional[str]:
        """Read a file through the cache; None when unreadable or oversized."""
        full = os.path.join(self.root, rel_path)
        try:
            size = os.path.getsize(full)
            if size > self.max_bytes:
                logger.warning(f"Skipping large file {rel_path}: {size / (1024 * 1024):.1f}MB")
                with self._lock:
                    self.stats["files_skipped"] += 1
                return None
            content = self.cache.read(full)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"File read error {rel_path}: {e}")
            with self._lock:
                self.stats["files_errored"] += 1
            return None

        with self._lock:
            self.stats["files_scanned"] += 1
        return content

    def walk(self) -> Iterator[Tuple[str, str]]:
        """Yield (relative path, content) for every readable qualifying file."""
        for rel in self.collect_files():
            if self.expired():
                self._truncate("timeout exceeded")
                return
            content = self.read(rel)
            if content is not None:
                yield rel, content
