"""Integration tests for the mdpolyglot CLI."""

import json
import subprocess
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from mdpolyglot import __version__
from mdpolyglot.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty directory so no config is discovered."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_versions() -> Iterator[None]:
    """Answer every ``--version`` call without running a binary."""
    done = subprocess.CompletedProcess(["tool"], 0, stdout="tool 1.0\n", stderr="")
    with patch("mdpolyglot.utils.preflight.subprocess.run", return_value=done):
        yield


def doc(documents_dir: Path, name: str) -> str:
    return str(documents_dir / f"{name}.md")


class TestGlobalOptions:
    """Tests for options handled by the app callback."""

    def test_version(self) -> None:
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"mdpolyglot {__version__}" in result.stdout

    def test_no_args_shows_help(self) -> None:
        """Test running without a command prints usage."""
        result = runner.invoke(app, [])
        assert "Usage" in result.output

    def test_invalid_config(self, tmp_path: Path, documents_dir: Path) -> None:
        """Test malformed YAML exits with code 1."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("docker: [unclosed")
        result = runner.invoke(app, ["--config", str(bad), "classify", doc(documents_dir, "plain")])
        assert result.exit_code == 1

    def test_missing_document(self, tmp_path: Path) -> None:
        """Test a missing document is a usage error."""
        result = runner.invoke(app, ["classify", str(tmp_path / "absent.md")])
        assert result.exit_code == 2


class TestInspectionCommands:
    """Tests for classify, ast and sanitize."""

    def test_classify(self, documents_dir: Path) -> None:
        """Test the human-readable classification."""
        result = runner.invoke(app, ["classify", doc(documents_dir, "kubernetes")])
        assert result.exit_code == 0
        assert "Language: kubernetes" in result.stdout
        assert "Artifacts: 2" in result.stdout
        assert "kubernetes (deployment)" in result.stdout

    def test_classify_json(self, documents_dir: Path) -> None:
        """Test JSON classification omits the AST."""
        result = runner.invoke(app, ["--quiet", "classify", "--json", doc(documents_dir, "git_repo")])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["language"] == "git"
        assert [a["location"] for a in data["artifacts"]] == ["README.md", "src/app.py"]
        assert "ast" not in data

    def test_ast_without_positions(self, documents_dir: Path) -> None:
        """Test the AST can be printed without positions."""
        result = runner.invoke(app, ["--quiet", "ast", "--no-positions", doc(documents_dir, "plain")])
        assert result.exit_code == 0
        tree = json.loads(result.stdout)
        assert tree["type"] == "root"
        assert "position" not in tree
        assert "position" not in tree["children"][0]
        assert tree["data"]["kyozo"]["language"] == "none"

    def test_sanitize_to_file(self, documents_dir: Path, tmp_path: Path) -> None:
        """Test sanitize writes a document free of directives."""
        output = tmp_path / "clean" / "executable.md"
        result = runner.invoke(app, ["sanitize", doc(documents_dir, "executable"), "-o", str(output)])
        assert result.exit_code == 0
        cleaned = output.read_text()
        assert "polyglot:" not in cleaned
        assert 'echo "$GREETING from polyglot"' in cleaned

    def test_sanitize_to_stdout(self, tmp_path: Path) -> None:
        """Test sanitize prints to stdout by default."""
        source = tmp_path / "hidden.md"
        source.write_text("a\u200bb <!-- polyglot:executable -->\n", encoding="utf-8")
        result = runner.invoke(app, ["sanitize", str(source)])
        assert result.exit_code == 0
        assert result.stdout == "ab \n"


class TestTranspile:
    """Tests for the transpile command."""

    def test_docker(self, documents_dir: Path) -> None:
        """Test transpiling to Docker shows the build input."""
        result = runner.invoke(app, ["--quiet", "transpile", doc(documents_dir, "dockerfile"), "-t", "docker"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["tag"] == "api:1.0"
        assert data["dockerfile"].startswith("FROM python:3.12-slim")

    def test_missing_artifact(self, documents_dir: Path) -> None:
        """Test a target without artifacts exits with code 1."""
        result = runner.invoke(app, ["--quiet", "transpile", doc(documents_dir, "dockerfile"), "-t", "sql"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["ok"] is False
        assert data["target"] == "sql"

    def test_unknown_target(self, documents_dir: Path) -> None:
        """Test an unknown target is a usage error."""
        result = runner.invoke(app, ["transpile", doc(documents_dir, "dockerfile"), "-t", "ansible"])
        assert result.exit_code == 2


class TestRun:
    """Tests for the run command."""

    def test_plain_document(self, documents_dir: Path) -> None:
        """Test documentation-only documents succeed without a tool."""
        result = runner.invoke(app, ["run", doc(documents_dir, "plain")])
        assert result.exit_code == 0
        assert "noop: ok" in result.stdout
        assert "documentation only" in result.stdout

    def test_dry_run(self, documents_dir: Path, tools_absent: None) -> None:
        """Test dry run transpiles without executing."""
        result = runner.invoke(app, ["--quiet", "run", "--dry-run", doc(documents_dir, "terraform")])
        assert result.exit_code == 0
        plan = json.loads(result.stdout)
        assert plan["language"] == "terraform"
        assert plan["executor"] == "terraform"
        assert plan["tool_available"] is False
        assert plan["transpiled"]["ok"] is True

    def test_mock_run(self, documents_dir: Path, tools_absent: None) -> None:
        """Test missing tools produce a mock result and exit 0."""
        result = runner.invoke(app, ["run", doc(documents_dir, "kubernetes")])
        assert result.exit_code == 0
        assert "kubernetes: mock result" in result.stdout
        assert "applied: 2, failed: 0" in result.stdout

    def test_markdown_report(self, documents_dir: Path, tmp_path: Path, tools_absent: None) -> None:
        """Test a Markdown report is written."""
        report = tmp_path / "out" / "report.md"
        result = runner.invoke(app, ["run", doc(documents_dir, "dockerfile"), "--report", str(report)])
        assert result.exit_code == 0
        content = report.read_text()
        assert "Documents: 1 (1 succeeded, 0 failed)" in content
        assert "| dockerfile | docker | mock |" in content

    def test_json_report(self, documents_dir: Path, tmp_path: Path, tools_absent: None) -> None:
        """Test a JSON report carries the document id and language."""
        report = tmp_path / "report.json"
        result = runner.invoke(
            app, ["run", doc(documents_dir, "sql"), "--report", str(report), "--format", "json"]
        )
        assert result.exit_code == 0
        data = json.loads(report.read_text())
        assert data["document_id"].endswith("sql.md")
        assert data["language"] == "sql"
        assert data["mock"] is True

    def test_invalid_format(self, documents_dir: Path) -> None:
        """Test an unknown report format exits with code 1."""
        result = runner.invoke(app, ["run", doc(documents_dir, "plain"), "--format", "html"])
        assert result.exit_code == 1

    def test_strict_missing_tool_fails(self, documents_dir: Path, tmp_path: Path, tools_absent: None) -> None:
        """Test a missing tool fails the run when mocking is disabled."""
        config = tmp_path / "strict.yaml"
        config.write_text("execution:\n  mock_missing_tools: false\n")
        result = runner.invoke(app, ["--config", str(config), "run", doc(documents_dir, "dockerfile")])
        assert result.exit_code == 1
        assert "tool_not_installed" in result.stdout

    def test_fail_on_error_disabled(self, documents_dir: Path, tmp_path: Path, tools_absent: None) -> None:
        """Test failures exit 0 when the CI gate is off."""
        config = tmp_path / "lenient.yaml"
        config.write_text("execution:\n  mock_missing_tools: false\nci:\n  fail_on_error: false\n")
        result = runner.invoke(app, ["--config", str(config), "run", doc(documents_dir, "dockerfile")])
        assert result.exit_code == 0


class TestCheck:
    """Tests for the check command."""

    def test_all_available(self, tools_present: None, fake_versions: None) -> None:
        """Test exit code 0 when every tool is found."""
        result = runner.invoke(app, ["--quiet", "check", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["all_available"] is True

    def test_missing_tools_warn(self, tools_absent: None) -> None:
        """Test exit code 2 when tools are missing but mocked."""
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 2
        assert "Some tools are missing" in result.stdout

    def test_missing_tools_fail(self, tmp_path: Path, tools_absent: None) -> None:
        """Test exit code 1 when mocking is disabled."""
        config = tmp_path / "strict.yaml"
        config.write_text("execution:\n  mock_missing_tools: false\n")
        result = runner.invoke(app, ["--config", str(config), "check"])
        assert result.exit_code == 1
        assert "Preflight check FAILED" in result.stdout


class TestInit:
    """Tests for the init command."""

    def test_creates_config(self, isolated_cwd: Path) -> None:
        """Test init writes a discoverable config."""
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert (isolated_cwd / ".mdpolyglot" / "config.yaml").exists()

    def test_refuses_to_overwrite(self, isolated_cwd: Path) -> None:
        """Test init does not overwrite without --force."""
        assert runner.invoke(app, ["init"]).exit_code == 0
        assert runner.invoke(app, ["init"]).exit_code == 1
        assert runner.invoke(app, ["init", "--force"]).exit_code == 0
