"""Framework detection from project manifests."""

import json

import pytest

from engine.detector import FRAMEWORK_TAGS, UNKNOWN, detect_framework


class TestNodeManifests:
    """package.json dependency tables."""

    def test_nextjs_wins_over_express(self, make_project):
        root = make_project({"package.json": json.dumps({
            "dependencies": {"express": "^4.18.0", "next": "14.0.0"},
        })})
        assert detect_framework(root) == "nextjs"

    def test_dev_dependencies_are_read(self, make_project):
        root = make_project({"package.json": json.dumps({"devDependencies": {"fastify": "^4"}})})
        assert detect_framework(root) == "fastify"

    def test_malformed_package_json_falls_through(self, make_project):
        root = make_project({
            "package.json": "{ not json",
            "requirements.txt": "flask==3.0.0\n",
        })
        assert detect_framework(root) == "flask"


class TestOtherEcosystems:
    """One manifest per ecosystem."""

    @pytest.mark.parametrize("files, expected", [
        ({"requirements.txt": "fastapi>=0.100\nuvicorn\n"}, "fastapi"),
        ({"pyproject.toml": "[project]\ndependencies = ['Django>=4.2']\n"}, "django"),
        ({"pom.xml": "<artifactId>spring-boot-starter-web</artifactId>"}, "spring"),
        ({"build.gradle.kts": 'implementation("io.ktor:ktor-server-core")'}, "ktor"),
        ({"go.mod": "module x\nrequire github.com/gin-gonic/gin v1.9.1\n"}, "gin"),
        ({"go.mod": "module x\n"}, "go-http"),
        ({"Gemfile": "gem 'rails', '~> 7.0'\n"}, "rails"),
        ({"composer.json": json.dumps({"require": {"laravel/framework": "^10.0"}})}, "laravel"),
        ({"Program.cs": "var builder = WebApplication.CreateBuilder(args);"}, "aspnet"),
        ({"Cargo.toml": "[dependencies]\naxum = \"0.7\"\n"}, "axum"),
        ({"pubspec.yaml": "dependencies:\n  shelf: ^1.4.0\n"}, "shelf"),
        ({"mix.exs": "defp deps do\n  [{:phoenix, \"~> 1.7\"}]\nend\n"}, "phoenix"),
    ])
    def test_manifest(self, make_project, files, expected):
        assert detect_framework(make_project(files)) == expected

    def test_csproj_with_web_sdk(self, make_project):
        root = make_project({"Api.csproj": '<Project Sdk="Microsoft.NET.Sdk.Web"></Project>'})
        assert detect_framework(root) == "aspnet"

    def test_malformed_pubspec_is_skipped(self, make_project):
        root = make_project({"pubspec.yaml": "dependencies: [unclosed\n"})
        assert detect_framework(root) == UNKNOWN


class TestUnknown:
    """Nothing recognizable yields the unknown tag, never an error."""

    def test_empty_directory(self, tmp_path):
        assert detect_framework(str(tmp_path)) == UNKNOWN

    def test_missing_directory(self, tmp_path):
        assert detect_framework(str(tmp_path / "missing")) == UNKNOWN

    def test_result_is_a_known_tag(self, make_project):
        root = make_project({"Gemfile": "gem 'puma'\n"})
        assert detect_framework(root) in FRAMEWORK_TAGS
