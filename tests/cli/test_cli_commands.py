"""Tests for the cdl distill and languages commands."""

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from codedistill.cli.main import cli

runner = CliRunner()

VALID = """\
package demo;

import java.util.List;
import java.net.URI;

public class Demo {
    public List<String> names() { return null; }
    private void helper() {}
}
"""

MALFORMED = "public class Broken {\n    void run( {\n}\n"


@pytest.fixture(autouse=True)
def isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """No user or repo config leaks in, and logging is reset after each run."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "codedistill.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"
    )
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    (src / "Demo.java").write_text(VALID)
    (src / "util.py").write_text("import os\n\ndef cwd() -> str:\n    return os.getcwd()\n")
    return src


class TestLanguagesCommand:
    def test_given_default_registry_when_listed_then_java_and_python(self) -> None:
        result = runner.invoke(cli, ["languages"])

        assert result.exit_code == 0
        assert "java: .java (tree-sitter-java)" in result.stdout
        assert "python: .py, .pyi (tree-sitter-python)" in result.stdout

    def test_given_json_flag_when_listed_then_rows(self) -> None:
        result = runner.invoke(cli, ["languages", "--json"])

        rows = json.loads(result.stdout)
        assert [r["language"] for r in rows] == ["java", "python"]
        assert rows[0]["extensions"] == ["java"]


class TestDistillCommand:
    def test_given_directory_when_distilled_then_file_blocks(self, project: Path) -> None:
        # When
        result = runner.invoke(cli, ["distill", str(project), "--no-diagnostics"])

        # Then
        assert result.exit_code == 0
        assert f'<file path="{project / "Demo.java"}">' in result.stdout
        assert "public class Demo {" in result.stdout
        assert "import java.net.URI;" not in result.stdout
        assert "def cwd() -> str: ..." in result.stdout
        assert result.stdout.count("</file>") == 2

    def test_given_visibility_flag_when_distilled_then_private_members_gone(
        self, project: Path
    ) -> None:
        result = runner.invoke(
            cli, ["distill", str(project / "Demo.java"), "--visibility", "public"]
        )

        assert result.exit_code == 0
        assert "helper" not in result.stdout
        assert "names()" in result.stdout

    def test_given_json_flag_when_distilled_then_structured_output(self, project: Path) -> None:
        result = runner.invoke(cli, ["distill", str(project / "Demo.java"), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["counts"]["ok"] == 1
        [entry] = data["files"]
        assert entry["status"] == "ok"
        assert entry["unused_imports"] == ["java.net.URI"]

    def test_given_malformed_file_when_distilled_then_exit_one(
        self, tmp_path: Path, project: Path
    ) -> None:
        (project / "Broken.java").write_text(MALFORMED)

        result = runner.invoke(cli, ["distill", str(project), "--json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        statuses = {Path(f["path"]).name: f["status"] for f in data["files"]}
        assert statuses == {"Broken.java": "syntax_error", "Demo.java": "ok", "util.py": "ok"}

    def test_given_invalid_visibility_when_distilled_then_config_error(
        self, project: Path
    ) -> None:
        result = runner.invoke(cli, ["distill", str(project), "--visibility", "secret"])

        assert result.exit_code != 0
        assert "<file" not in result.stdout

    def test_given_invalid_wildcard_policy_when_distilled_then_usage_error(
        self, project: Path
    ) -> None:
        result = runner.invoke(cli, ["distill", str(project), "--wildcards", "some"])

        assert result.exit_code == 2

    def test_given_no_sources_when_distilled_then_error(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        result = runner.invoke(cli, ["distill", str(empty)])

        assert result.exit_code == 1
        assert "No source files found" in result.stderr

    def test_given_repo_config_when_distilled_then_applied(
        self, tmp_path: Path, project: Path
    ) -> None:
        (tmp_path / ".codedistill.yaml").write_text("distill:\n  detail_level: signatures\n")

        result = runner.invoke(cli, ["distill", str(project / "Demo.java")])

        assert result.exit_code == 0
        assert "public List<String> names();" in result.stdout

    def test_given_missing_config_path_when_distilled_then_error(self, project: Path) -> None:
        result = runner.invoke(
            cli, ["distill", str(project), "--config", str(project / "missing.yaml")]
        )

        assert result.exit_code == 1
        assert "Config file not found" in result.stderr

    def test_given_no_docstrings_flag_when_distilled_then_docs_dropped(
        self, tmp_path: Path
    ) -> None:
        source = tmp_path / "Doc.java"
        source.write_text("/** Documented. */\npublic class Doc {\n}\n")

        with_docs = runner.invoke(cli, ["distill", str(source), "--no-diagnostics"])
        without = runner.invoke(
            cli, ["distill", str(source), "--no-diagnostics", "--no-docstrings"]
        )

        assert with_docs.exit_code == 0
        assert "/** Documented. */\npublic class Doc {" in with_docs.stdout
        assert without.exit_code == 0
        assert "Documented" not in without.stdout
        assert "public class Doc {" in without.stdout
