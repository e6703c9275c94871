"""SourceWalker traversal rules and the ContentCache behind it."""

import os
import time

from cache import ContentCache
from engine.walker import SourceWalker, ignore_dirs_for


def _js(path: str) -> bool:
    return path.endswith(".js")


class TestSourceWalker:
    """Depth-first traversal with exclusions and ceilings."""

    def test_walk_order_is_sorted(self, make_project):
        root = make_project({"b.js": "", "a.js": "", "lib/c.js": "", "README.md": ""})
        walker = SourceWalker(root, _js, ignore_dirs_for("express"))
        assert walker.collect_files() == ["a.js", "b.js", "lib/c.js"]
        assert walker.stats["files_skipped"] == 1

    def test_ecosystem_dirs_are_skipped(self, make_project):
        root = make_project({
            "src/app.js": "",
            "node_modules/express/index.js": "",
            "dist/bundle.js": "",
            ".git/hooks/pre-commit.js": "",
        })
        walker = SourceWalker(root, _js, ignore_dirs_for("express"))
        assert walker.collect_files() == ["src/app.js"]

    def test_unknown_framework_uses_every_blacklist(self):
        dirs = ignore_dirs_for("unknown")
        assert {"node_modules", "__pycache__", "vendor", "target", "bin", "deps"} <= dirs

    def test_extra_ignore_dirs(self, make_project):
        root = make_project({"src/app.js": "", "generated/api.js": ""})
        walker = SourceWalker(root, _js, ignore_dirs_for("express", {"generated"}))
        assert walker.collect_files() == ["src/app.js"]

    def test_depth_cap(self, make_project):
        root = make_project({"a/b/c/deep.js": "", "a/shallow.js": ""})
        walker = SourceWalker(root, _js, set(), max_depth=1)
        assert walker.collect_files() == ["a/shallow.js"]

    def test_depth_counts_levels_below_root(self, make_project):
        root = make_project({"a/b/two.js": "", "a/b/c/three.js": ""})
        walker = SourceWalker(root, _js, set(), max_depth=2)
        assert walker.collect_files() == ["a/b/two.js"]

    def test_file_ceiling_truncates(self, make_project):
        root = make_project({f"f{i}.js": "" for i in range(5)})
        walker = SourceWalker(root, _js, set(), max_files=3)
        assert len(walker.collect_files()) == 3
        assert walker.stats["truncated"] is True

    def test_expired_deadline_stops_the_walk(self, make_project):
        root = make_project({"a.js": ""})
        walker = SourceWalker(root, _js, set(), deadline=time.monotonic() - 1)
        assert walker.collect_files() == []
        assert walker.stats["truncated"] is True

    def test_oversized_file_is_skipped(self, make_project):
        root = make_project({"big.js": "x" * 2048})
        walker = SourceWalker(root, _js, set(), max_file_size_mb=0)
        assert walker.read("big.js") is None
        assert walker.stats["files_skipped"] == 1

    def test_unreadable_file_is_counted(self, make_project):
        root = make_project({"a.js": ""})
        walker = SourceWalker(root, _js, set())
        assert walker.read("gone.js") is None
        assert walker.stats["files_errored"] == 1

    def test_walk_yields_contents(self, make_project):
        root = make_project({"a.js": "app.get('/x')\n"})
        walker = SourceWalker(root, _js, set())
        assert list(walker.walk()) == [("a.js", "app.get('/x')\n")]
        assert walker.stats["files_scanned"] == 1

    def test_missing_root(self, tmp_path):
        walker = SourceWalker(str(tmp_path / "missing"), _js, set())
        assert walker.collect_files() == []


class TestContentCache:
    """(path, mtime) keyed cache with batch eviction."""

    def test_second_read_is_a_hit(self, make_project):
        root = make_project({"a.js": "one"})
        cache = ContentCache()
        path = os.path.join(root, "a.js")
        assert cache.read(path) == "one"
        assert cache.read(path) == "one"
        assert cache.get_stats()["hits"] == 1

    def test_mtime_change_invalidates(self, make_project):
        root = make_project({"a.js": "one"})
        cache = ContentCache()
        path = os.path.join(root, "a.js")
        cache.read(path)
        with open(path, "w") as f:
            f.write("two")
        stat = os.stat(path)
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        assert cache.read(path) == "two"

    def test_batch_eviction(self):
        cache = ContentCache(capacity=4, evict_batch=2)
        for i in range(5):
            cache.set(f"/f{i}", 0, str(i))
        assert len(cache) == 3
        assert "/f0" not in cache and "/f1" not in cache
        assert "/f4" in cache
        assert cache.get_stats()["evictions"] == 2

    def test_stale_get_is_a_miss(self):
        cache = ContentCache()
        cache.set("/a", 1, "x")
        assert cache.get("/a", 2) is None
        assert cache.get("/a", 1) == "x"
