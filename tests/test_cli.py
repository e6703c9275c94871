"""Command-line entry point."""

import json

import pytest
import yaml

import main


@pytest.fixture
def project(make_project):
    return make_project({
        "package.json": json.dumps({"dependencies": {"express": "^4.18.0"}}),
        "src/app.js": """
            const app = require('express')();
            app.get('/users', listUsers);
            app.get('/users/:id', getUser);
            app.post('/users', requireAuth, createUser);
        """,
    })


class TestMain:

    def test_scan_and_exports(self, project, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        argv = [
            project, "-q",
            "-o", str(out / "result.json"),
            "--export-openapi", str(out / "api.yaml"),
            "--export-postman", str(out / "api.postman_collection.json"),
            "--export-curl", str(out / "api.sh"),
            "--export-sdk", str(out / "sdk.json"),
            "--export-mocks", str(out / "mocks.json"),
        ]
        assert main.main(argv) == 0

        result = json.loads((out / "result.json").read_text())
        assert result["framework"] == "express"
        assert [(e["method"], e["path"]) for e in result["endpoints"]] == [
            ("GET", "/users"), ("GET", "/users/{id}"), ("POST", "/users"),
        ]
        assert result["summary"]["total"] == 3

        openapi = yaml.safe_load((out / "api.yaml").read_text())
        assert set(openapi["paths"]) == {"/users", "/users/{id}"}

        postman = json.loads((out / "api.postman_collection.json").read_text())
        assert [f["name"] for f in postman["item"]] == ["users"]

        assert (out / "api.sh").read_text().startswith("#!/bin/sh\n")
        sdk = json.loads((out / "sdk.json").read_text())
        assert set(sdk["GET /users @ src/app.js"]) == {"typescript", "javascript", "python", "curl"}
        mocks = json.loads((out / "mocks.json").read_text())
        assert "pagination" in mocks["GET /users @ src/app.js"]["response_example"]

    def test_default_export_name(self, project, tmp_path, monkeypatch):
        workdir = tmp_path / "cwd"
        workdir.mkdir()
        monkeypatch.chdir(workdir)
        assert main.main([project, "-q", "--export-openapi"]) == 0
        name = project.rstrip("/").split("/")[-1]
        assert (workdir / f"{name}-openapi.json").exists()

    def test_missing_target(self, tmp_path):
        assert main.main([str(tmp_path / "missing"), "-q"]) == 1

    def test_bad_config(self, project, tmp_path):
        config = tmp_path / "bad.json"
        config.write_text(json.dumps({"not_a_setting": True}))
        assert main.main([project, "-q", "--config", str(config)]) == 1

    def test_log_file(self, project, tmp_path):
        log = tmp_path / "scan.log"
        assert main.main([project, "-q", "--log-file", str(log)]) == 0
        assert "Scan complete" in log.read_text()

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main.main(["--version"])
        assert exc.value.code == 0
        assert main.__version__ in capsys.readouterr().out


class TestHelpers:

    @pytest.mark.parametrize("target, expected", [
        ("https://github.com/org/repo.git", True),
        ("git@github.com:org/repo.git", True),
        ("./src", False),
    ])
    def test_is_remote(self, target, expected):
        assert main.is_remote(target) is expected

    def test_export_path(self):
        assert main._export_path("AUTO", "x.json") == "x.json"
        assert main._export_path("mine.json", "x.json") == "mine.json"
