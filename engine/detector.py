"""Technology detector: classifies a project's primary web framework from its manifests."""
from __future__ import annotations

import json
import logging
import os
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import yaml

logger = logging.getLogger("endpoint_scanner.engine.detector")

UNKNOWN = "unknown"

# Framework tag -> ecosystem key used for the walker blacklist.
ECOSYSTEM_OF: Dict[str, str] = {
    # Node
    "nextjs": "node", "express": "node", "fastify": "node", "nestjs": "node",
    "koa": "node", "hono": "node", "trpc": "node", "hapi": "node", "restify": "node",
    # Python
    "fastapi": "python", "flask": "python", "django": "python", "tornado": "python",
    "aiohttp": "python", "sanic": "python",
    # JVM
    "spring": "jvm", "quarkus": "jvm", "micronaut": "jvm", "vertx": "jvm", "ktor": "jvm",
    # Go
    "gin": "go", "echo": "go", "fiber": "go", "gorilla": "go", "chi": "go", "go-http": "go",
    # Ruby
    "rails": "ruby", "sinatra": "ruby", "grape": "ruby", "hanami": "ruby",
    # PHP
    "laravel": "php", "symfony": "php", "slim": "php", "yii": "php",
    # .NET
    "aspnet": "dotnet",
    # Rust
    "actix": "rust", "rocket": "rust", "axum": "rust", "warp": "rust",
    # Dart
    "shelf": "dart", "aqueduct": "dart",
    # Elixir
    "phoenix": "elixir",
}

FRAMEWORK_TAGS = tuple(sorted(ECOSYSTEM_OF)) + (UNKNOWN,)

# Ordered (needle, tag) tables; the first needle found wins.
NODE_DEPENDENCIES = [
    ("next", "nextjs"),
    ("express", "express"),
    ("fastify", "fastify"),
    ("@nestjs/core", "nestjs"),
    ("koa", "koa"),
    ("hono", "hono"),
    ("@trpc/server", "trpc"),
    ("@hapi/hapi", "hapi"),
    ("restify", "restify"),
]

REQUIREMENTS_NEEDLES = [
    ("fastapi", "fastapi"),
    ("flask", "flask"),
    ("django", "django"),
    ("tornado", "tornado"),
    ("aiohttp", "aiohttp"),
    ("sanic", "sanic"),
]

PYPROJECT_NEEDLES = [
    ("fastapi", "fastapi"),
    ("django", "django"),
    ("flask", "flask"),
]

POM_NEEDLES = [
    ("spring-boot", "spring"),
    ("quarkus", "quarkus"),
    ("micronaut", "micronaut"),
    ("vertx", "vertx"),
]

GRADLE_NEEDLES = [
    ("ktor", "ktor"),
    ("micronaut", "micronaut"),
    ("quarkus", "quarkus"),
]

GO_MOD_NEEDLES = [
    ("gin-gonic", "gin"),
    ("labstack/echo", "echo"),
    ("gofiber/fiber", "fiber"),
    ("gorilla/mux", "gorilla"),
    ("go-chi/chi", "chi"),
]

GEMFILE_NEEDLES = [
    ("rails", "rails"),
    ("sinatra", "sinatra"),
    ("grape", "grape"),
    ("hanami", "hanami"),
]

COMPOSER_PACKAGES = [
    ("laravel/framework", "laravel"),
    ("symfony/framework-bundle", "symfony"),
    ("slim/slim", "slim"),
    ("yiisoft/yii2", "yii"),
]

CARGO_NEEDLES = [
    ("actix-web", "actix"),
    ("rocket", "rocket"),
    ("axum", "axum"),
    ("warp", "warp"),
]

PUBSPEC_PACKAGES = [
    ("shelf", "shelf"),
    ("aqueduct", "aqueduct"),
]


def _read(root: str, name: str) -> Optional[str]:
    path = os.path.join(root, name)
    if not os.path.isfile(path):
        return None
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        return f.read()


def _first_needle(text: str, table: Iterable[Tuple[str, str]]) -> Optional[str]:
    for needle, tag in table:
        if needle in text:
            return tag
    return None


def _first_key(mapping: Dict, table: Iterable[Tuple[str, str]]) -> Optional[str]:
    for key, tag in table:
        if key in mapping:
            return tag
    return None


# =============================================================================
# PROBES (one per ecosystem, in priority order)
# =============================================================================

def _probe_node(root: str) -> Optional[str]:
    text = _read(root, "package.json")
    if text is None:
        return None
    pkg = json.loads(text) or {}
    deps = {**(pkg.get("dependencies") or {}), **(pkg.get("devDependencies") or {})}
    return _first_key(deps, NODE_DEPENDENCIES)


def _probe_python(root: str) -> Optional[str]:
    text = _read(root, "requirements.txt")
    if text is not None:
        tag = _first_needle(text.lower(), REQUIREMENTS_NEEDLES)
        if tag:
            return tag
    text = _read(root, "pyproject.toml")
    if text is not None:
        return _first_needle(text.lower(), PYPROJECT_NEEDLES)
    return None


def _probe_jvm(root: str) -> Optional[str]:
    text = _read(root, "pom.xml")
    if text is not None:
        return _first_needle(text, POM_NEEDLES) or "spring"
    for name in ("build.gradle", "build.gradle.kts"):
        text = _read(root, name)
        if text is not None:
            return _first_needle(text, GRADLE_NEEDLES) or "spring"
    return None


def _probe_go(root: str) -> Optional[str]:
    text = _read(root, "go.mod")
    if text is None:
        return None
    return _first_needle(text, GO_MOD_NEEDLES) or "go-http"


def _probe_ruby(root: str) -> Optional[str]:
    text = _read(root, "Gemfile")
    if text is None:
        return None
    return _first_needle(text, GEMFILE_NEEDLES)


def _probe_php(root: str) -> Optional[str]:
    text = _read(root, "composer.json")
    if text is None:
        return None
    composer = json.loads(text) or {}
    require = {**(composer.get("require") or {}), **(composer.get("require-dev") or {})}
    return _first_key(require, COMPOSER_PACKAGES)


def _probe_dotnet(root: str) -> Optional[str]:
    if os.path.isfile(os.path.join(root, "Program.cs")) or os.path.isfile(os.path.join(root, "Startup.cs")):
        return "aspnet"
    csproj_files = sorted(f for f in os.listdir(root) if f.endswith(".csproj"))
    for name in csproj_files:
        text = _read(root, name) or ""
        if "Microsoft.AspNetCore" in text or "Microsoft.NET.Sdk.Web" in text:
            return "aspnet"
    return None


def _probe_rust(root: str) -> Optional[str]:
    text = _read(root, "Cargo.toml")
    if text is None:
        return None
    return _first_needle(text, CARGO_NEEDLES)


def _probe_dart(root: str) -> Optional[str]:
    text = _read(root, "pubspec.yaml")
    if text is None:
        return None
    pubspec = yaml.safe_load(text) or {}
    deps = {}
    if isinstance(pubspec, dict):
        deps.update(pubspec.get("dependencies") or {})
        deps.update(pubspec.get("dev_dependencies") or {})
    return _first_key(deps, PUBSPEC_PACKAGES)


def _probe_elixir(root: str) -> Optional[str]:
    text = _read(root, "mix.exs")
    if text is not None and ":phoenix" in text:
        return "phoenix"
    return None


PROBES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("node", _probe_node),
    ("python", _probe_python),
    ("jvm", _probe_jvm),
    ("go", _probe_go),
    ("ruby", _probe_ruby),
    ("php", _probe_php),
    ("dotnet", _probe_dotnet),
    ("rust", _probe_rust),
    ("dart", _probe_dart),
    ("elixir", _probe_elixir),
]


def detect_framework(root: str) -> str:
    """
    Return the framework tag of the project at root, or "unknown".

    Manifests are probed in ecosystem priority order; a manifest that cannot
    be read or parsed is skipped and detection falls through. Never raises.
    """
    if not root or not os.path.isdir(root):
        return UNKNOWN

    for ecosystem, probe in PROBES:
        try:
            tag = probe(root)
        except (OSError, ValueError, UnicodeDecodeError, yaml.YAMLError, AttributeError, TypeError) as e:
            logger.debug(f"Manifest probe '{ecosystem}' failed in {root}: {e}")
            continue
        if tag:
            logger.info(f"Detected framework '{tag}' ({ecosystem})")
            return tag

    return UNKNOWN
