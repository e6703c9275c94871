"""
Scanner configuration with sensible defaults.

Can be loaded from environment variables, a JSON/YAML file, or CLI args.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Set

import yaml

from analytics.health import DEFAULT_HEALTH_WEIGHTS


class ConfigError(ValueError):
    """Raised for an invalid configuration file."""


@dataclass
class ScannerConfig:
    """
    Scanner configuration.

    Thresholds and weights of the analytics passes live here rather than in
    the passes themselves so callers can tune them per project.
    """
    # Walking
    ignore_dirs: Set[str] = field(default_factory=set)
    max_depth: int = 8
    max_file_size_mb: int = 2
    max_files: int = 20000
    timeout_seconds: int = 300
    parallel_workers: int = 1

    # Content cache
    cache_capacity: int = 500
    cache_evict_batch: int = 100

    # Canonicalization
    merge_duplicates: bool = False

    # Analytics
    similarity_threshold: int = 50
    duplicate_threshold: int = 80
    health_weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_HEALTH_WEIGHTS))

    # Extraction
    include_protocols: bool = True

    # Rendering
    base_url: str = "http://localhost:3000"
    sdk_base_url: str = "https://api.example.com"

    def __post_init__(self):
        if isinstance(self.ignore_dirs, (list, tuple)):
            self.ignore_dirs = set(self.ignore_dirs)
        weights = dict(DEFAULT_HEALTH_WEIGHTS)
        weights.update(self.health_weights or {})
        self.health_weights = weights

    @classmethod
    def from_env(cls) -> "ScannerConfig":
        """Load configuration from SCANNER_* environment variables."""
        ignore = os.getenv("SCANNER_IGNORE_DIRS", "")
        return cls(
            ignore_dirs={d.strip() for d in ignore.split(",") if d.strip()},
            max_depth=int(os.getenv("SCANNER_MAX_DEPTH", 8)),
            max_file_size_mb=int(os.getenv("SCANNER_MAX_FILE_SIZE", 2)),
            max_files=int(os.getenv("SCANNER_MAX_FILES", 20000)),
            timeout_seconds=int(os.getenv("SCANNER_TIMEOUT", 300)),
            parallel_workers=int(os.getenv("SCANNER_WORKERS", 1)),
            cache_capacity=int(os.getenv("SCANNER_CACHE_CAPACITY", 500)),
            cache_evict_batch=int(os.getenv("SCANNER_CACHE_EVICT_BATCH", 100)),
            merge_duplicates=os.getenv("SCANNER_MERGE_DUPLICATES", "false").lower() == "true",
            similarity_threshold=int(os.getenv("SCANNER_SIMILARITY_THRESHOLD", 50)),
            duplicate_threshold=int(os.getenv("SCANNER_DUPLICATE_THRESHOLD", 80)),
            include_protocols=os.getenv("SCANNER_PROTOCOLS", "true").lower() == "true",
            base_url=os.getenv("SCANNER_BASE_URL", "http://localhost:3000"),
            sdk_base_url=os.getenv("SCANNER_SDK_BASE_URL", "https://api.example.com"),
        )

    @classmethod
    def from_file(cls, path: str) -> "ScannerConfig":
        """Load configuration from a JSON or YAML file."""
        try:
            with open(path, 'r') as f:
                if path.endswith(('.yaml', '.yml')):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load config {path}: {e}") from e

        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

        # Convert ignore_dirs list to set if present
        if 'ignore_dirs' in data and isinstance(data['ignore_dirs'], list):
            data['ignore_dirs'] = set(data['ignore_dirs'])

        return cls(**data)

    def with_overrides(self, **overrides: Optional[Any]) -> "ScannerConfig":
        """Return self with every non-None override applied."""
        for key, value in overrides.items():
            if value is not None:
                setattr(self, key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "ignore_dirs": sorted(self.ignore_dirs),
            "max_depth": self.max_depth,
            "max_file_size_mb": self.max_file_size_mb,
            "max_files": self.max_files,
            "timeout_seconds": self.timeout_seconds,
            "parallel_workers": self.parallel_workers,
            "cache_capacity": self.cache_capacity,
            "cache_evict_batch": self.cache_evict_batch,
            "merge_duplicates": self.merge_duplicates,
            "similarity_threshold": self.similarity_threshold,
            "duplicate_threshold": self.duplicate_threshold,
            "health_weights": dict(self.health_weights),
            "include_protocols": self.include_protocols,
            "base_url": self.base_url,
            "sdk_base_url": self.sdk_base_url,
        }
