"""Shared fixtures."""

import textwrap
from pathlib import Path
from typing import Callable, Dict

import pytest

from extractors.base import Language, RawMatch
from extractors.models import Endpoint


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[Dict[str, str]], str]:
    """
    Write {relative path: content} into tmp_path and return the root.

    Content is dedented so fixtures can be written inline.
    """
    def make(files: Dict[str, str]) -> str:
        for rel, content in files.items():
            target = tmp_path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return str(tmp_path)
    return make


@pytest.fixture
def make_endpoint() -> Callable[..., Endpoint]:
    def make(method: str = "GET", path: str = "/users", **kwargs) -> Endpoint:
        kwargs.setdefault("source_file", "src/app.js")
        kwargs.setdefault("framework", "express")
        kwargs.setdefault("language", "JavaScript")
        return Endpoint(method=method, path=path, **kwargs)
    return make


@pytest.fixture
def make_raw() -> Callable[..., RawMatch]:
    def make(method: str = "GET", raw_path: str = "/users", offset: int = 0, **kwargs) -> RawMatch:
        kwargs.setdefault("source_file", "src/app.js")
        kwargs.setdefault("framework", "express")
        kwargs.setdefault("language", Language.JAVASCRIPT)
        return RawMatch(method=method, raw_path=raw_path, offset=offset, **kwargs)
    return make
